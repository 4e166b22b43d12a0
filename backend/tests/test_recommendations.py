"""Tests for personalized recommendations and the user network view."""
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from glbiashara.core.config import settings
from glbiashara.models import FeedItem, FeedItemType
from glbiashara.services.recommendations import (
    get_personalized_recommendations,
    get_user_network,
)


def test_recommendations_sections(
    db: Session, make_user, make_provider, make_club, make_institution, make_product
):
    vodacom = make_provider(slug="vodacom")
    make_provider(slug="retired", is_active=False)
    member_club = make_club(slug="chess-club", sport="Chess")
    football = make_club(slug="simba-sc", sport="Football")
    make_club(slug="tennis-club", sport="Tennis")
    make_institution()
    user = make_user(profession="Engineer", skills=["Football", "Python"], club_ids=[member_club.id])
    peer = make_user(profession="Engineer")
    tagged = make_product(peer, title="Python course", tags=["Python"])
    by_category = make_product(peer, title="Multimeter", category="Engineer")
    make_product(peer, title="Old course", tags=["Python"], is_active=False)
    make_product(peer, title="Unrelated", tags=["Farming"])

    result = get_personalized_recommendations(db, user.id)

    assert result.success
    recs = result.data
    assert [p.id for p in recs.providers] == [vodacom.id]
    assert [c.id for c in recs.clubs] == [member_club.id, football.id]
    assert len(recs.institutions) == 1
    assert [p.id for p in recs.products] == [tagged.id, by_category.id]
    assert recs.products[0].seller.id == peer.id
    assert [u.id for u in recs.users] == [peer.id]


def test_sport_skill_heuristic_can_be_switched_off(db: Session, make_user, make_club, monkeypatch):
    make_club(slug="simba-sc", sport="Football")
    user = make_user(skills=["Football"])
    monkeypatch.setattr(settings, "RECOMMEND_CLUBS_BY_SPORT_SKILL", False)

    result = get_personalized_recommendations(db, user.id)

    assert result.data.clubs == []


def test_recommendations_for_unknown_user(db: Session):
    result = get_personalized_recommendations(db, 404)

    assert result.success
    assert result.not_found
    assert result.data is None


def test_user_network_view(db: Session, make_user, make_provider, make_club, make_institution):
    provider = make_provider()
    club = make_club()
    institution = make_institution()
    user = make_user(provider_id=provider.id, club_ids=[club.id], institution_id=institution.id)
    peer = make_user(provider_id=provider.id)
    stranger = make_user()

    base = datetime(2026, 1, 1, 12, 0, 0)
    db.add_all([
        FeedItem(type=FeedItemType.POST.value, user_id=peer.id, title="Peer post", created_at=base),
        FeedItem(type=FeedItemType.CLUB.value, content_id=club.id, title="Match day",
                 created_at=base + timedelta(hours=3)),
        FeedItem(type=FeedItemType.INSTITUTION.value, content_id=institution.id, title="Graduation",
                 created_at=base + timedelta(hours=1)),
        FeedItem(type=FeedItemType.PROVIDER.value, content_id=provider.id, title="New bundle",
                 created_at=base + timedelta(hours=2)),
        FeedItem(type=FeedItemType.POST.value, user_id=stranger.id, title="Stranger post", created_at=base),
        FeedItem(type=FeedItemType.POST.value, user_id=peer.id, title="Hidden", is_active=False, created_at=base),
    ])
    db.commit()

    result = get_user_network(db, user.id)

    assert result.success
    network = result.data
    assert network.user.provider.id == provider.id
    assert network.user.institution.id == institution.id
    assert [c.id for c in network.user.clubs] == [club.id]
    assert [u.id for u in network.similar_users] == [peer.id]
    assert [a.title for a in network.network_activities] == [
        "Match day", "New bundle", "Graduation", "Peer post",
    ]
    assert network.network_activities[-1].user.id == peer.id


def test_user_network_without_affiliations(db: Session, make_user):
    user = make_user()

    network = get_user_network(db, user.id).data

    assert network.similar_users == []
    assert network.network_activities == []
    assert network.user.provider is None
