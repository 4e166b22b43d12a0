"""Tests for connecting users to providers, clubs and institutions."""
from sqlalchemy.orm import Session

from glbiashara.models import User, FeedItem, FeedItemType
from glbiashara.services.connections import connect_to_entity


def _reload(db: Session, user_id: int) -> User:
    db.expire_all()
    return db.query(User).filter(User.id == user_id).first()


def test_joining_a_club_twice_keeps_one_membership(db: Session, make_user, make_club):
    club = make_club()
    user = make_user(club_ids=[club.id])

    result = connect_to_entity(db, user.id, "club", club.id)

    assert result.success
    assert result.data.created is False
    assert result.data.message == "Already connected to club"
    assert _reload(db, user.id).club_ids == [club.id]
    assert db.query(FeedItem).count() == 0


def test_joining_a_new_club_appends_it(db: Session, make_user, make_club):
    simba = make_club(slug="simba-sc")
    yanga = make_club(slug="yanga-sc")
    user = make_user(club_ids=[simba.id])

    result = connect_to_entity(db, user.id, "club", yanga.id)

    assert result.data.created is True
    assert result.data.message == "Successfully connected to club"
    assert _reload(db, user.id).club_ids == [simba.id, yanga.id]


def test_provider_connection_replaces_previous_one(db: Session, make_user, make_provider):
    vodacom = make_provider(slug="vodacom")
    airtel = make_provider(slug="airtel")
    user = make_user(provider_id=vodacom.id)

    result = connect_to_entity(db, user.id, "provider", airtel.id)

    assert result.success
    assert result.data.created is True
    assert _reload(db, user.id).provider_id == airtel.id


def test_institution_connection(db: Session, make_user, make_institution):
    institution = make_institution()
    user = make_user()

    result = connect_to_entity(db, user.id, "institution", institution.id)

    assert result.data.created is True
    assert _reload(db, user.id).institution_id == institution.id


def test_new_connection_writes_a_feed_item(db: Session, make_user, make_provider):
    provider = make_provider()
    user = make_user()

    connect_to_entity(db, user.id, "provider", provider.id)
    connect_to_entity(db, user.id, "provider", provider.id)

    items = db.query(FeedItem).all()
    assert len(items) == 1
    item = items[0]
    assert item.type == FeedItemType.CONNECTION.value
    assert item.user_id == user.id
    assert item.content_id == provider.id
    assert item.title == "Connected to provider"


def test_missing_user_or_entity_is_not_found(db: Session, make_user, make_club):
    club = make_club()
    user = make_user()

    no_user = connect_to_entity(db, 999, "club", club.id)
    no_club = connect_to_entity(db, user.id, "club", 999)

    assert no_user.not_found and no_user.error == "User not found"
    assert no_club.not_found and no_club.error == "Club not found"
    assert _reload(db, user.id).club_ids == []


def test_unsupported_entity_type_is_rejected(db: Session, make_user):
    user = make_user()

    result = connect_to_entity(db, user.id, "company", 1)

    assert not result.success
    assert result.invalid
