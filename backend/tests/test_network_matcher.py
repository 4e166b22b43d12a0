"""Tests for similar-user matching."""
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from glbiashara.services.network_matcher import find_similar_users, describe_match
from glbiashara.schemas.profile import ProfileUpdate
from glbiashara.services.profile import update_user_profile


def _ids(result):
    return [u.id for u in result.data]


def test_never_returns_the_user_itself(db: Session, make_user):
    target = make_user(profession="Engineer", skills=["Python"])
    other = make_user(profession="Engineer", skills=["Python"])

    result = find_similar_users(db, target.id)

    assert result.success
    assert _ids(result) == [other.id]


def test_one_shared_axis_is_enough(db: Session, make_user, make_club, make_provider, make_institution):
    club = make_club()
    provider = make_provider()
    institution = make_institution()
    target = make_user(
        profession="Nurse",
        skills=["Swahili"],
        club_ids=[club.id],
        provider_id=provider.id,
        institution_id=institution.id,
    )
    by_profession = make_user(profession="Nurse")
    by_skill = make_user(skills=["Swahili", "Cooking"])
    by_club = make_user(club_ids=[club.id])
    by_provider = make_user(provider_id=provider.id)
    by_institution = make_user(institution_id=institution.id)
    make_user(profession="Farmer", skills=["Cooking"])

    result = find_similar_users(db, target.id)

    assert sorted(_ids(result)) == sorted([
        by_profession.id, by_skill.id, by_club.id, by_provider.id, by_institution.id,
    ])


def test_result_is_capped_at_twenty(db: Session, make_user):
    target = make_user(profession="Driver")
    for _ in range(25):
        make_user(profession="Driver")

    result = find_similar_users(db, target.id)

    assert len(result.data) == 20
    assert target.id not in _ids(result)


def test_empty_skills_and_missing_profession_do_not_match(db: Session, make_user):
    target = make_user(skills=[], profession=None)
    make_user(skills=[], profession=None)
    make_user(skills=["Python"], profession="Engineer")

    result = find_similar_users(db, target.id)

    assert result.success
    assert result.data == []


def test_users_sharing_more_axes_come_first(db: Session, make_user, make_provider):
    provider = make_provider()
    target = make_user(profession="Chef", skills=["Baking"], provider_id=provider.id)
    one_axis = make_user(profession="Chef")
    three_axes = make_user(profession="Chef", skills=["Baking"], provider_id=provider.id)
    two_axes = make_user(skills=["Baking"], provider_id=provider.id)

    result = find_similar_users(db, target.id)

    assert _ids(result) == [three_axes.id, two_axes.id, one_axis.id]
    assert [u.match_score for u in result.data] == [3, 2, 1]
    assert result.data[0].match_reasons == ["profession", "skills", "provider"]


def test_shared_skills_and_clubs_are_reported(db: Session, make_user, make_club):
    football = make_club(slug="simba-sc")
    chess = make_club(slug="chess-club", sport="Chess")
    target = make_user(skills=["Python", "SQL"], club_ids=[football.id])
    candidate = make_user(skills=["SQL", "Go"], club_ids=[chess.id, football.id])

    similar = describe_match(target, candidate)

    assert similar.shared_skills == ["SQL"]
    assert similar.shared_club_ids == [football.id]
    assert similar.match_reasons == ["skills", "clubs"]


def test_unknown_user_is_not_found_with_empty_list(db: Session):
    result = find_similar_users(db, 999)

    assert result.success
    assert result.not_found
    assert result.data == []
    assert result.error == "User not found"


def test_database_error_becomes_failed_result():
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("database is down"))

    result = find_similar_users(session, 1)

    assert not result.success
    assert result.error == "Failed to find similar users"
    session.rollback.assert_called_once()


def test_user_drops_out_once_the_shared_profession_changes(db: Session, make_user):
    target = make_user(profession="Nurse")
    peer = make_user(profession="Nurse")
    assert _ids(find_similar_users(db, target.id)) == [peer.id]

    update_user_profile(db, peer.id, ProfileUpdate(profession="Pilot"))

    assert find_similar_users(db, target.id).data == []
