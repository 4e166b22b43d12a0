"""Tests for profile reads and partial updates."""
from sqlalchemy.orm import Session

from glbiashara.models import FeedItem
from glbiashara.schemas.profile import ProfileUpdate
from glbiashara.services.profile import (
    get_user_profile,
    update_user_profile,
    normalize_skills,
    count_connections,
)


def test_normalize_skills_trims_and_dedupes():
    assert normalize_skills(["Python", " Python ", "", "SQL", "  "]) == ["Python", "SQL"]


def test_profile_includes_affiliations_and_stats(
    db: Session, make_user, make_provider, make_club, make_product
):
    provider = make_provider()
    club = make_club()
    user = make_user(provider_id=provider.id, club_ids=[club.id], skills=["Design"])
    make_user(provider_id=provider.id)
    make_user(club_ids=[club.id])
    make_user()
    make_product(user, title="Logo design")
    make_product(user, title="Retired", is_active=False)
    db.add(FeedItem(type="post", user_id=user.id, title="Hello"))
    db.commit()

    result = get_user_profile(db, user.id)

    assert result.success
    profile = result.data
    assert profile.provider.slug == provider.slug
    assert [c.id for c in profile.clubs] == [club.id]
    assert profile.skills == ["Design"]
    assert profile.stats.total_products == 1
    assert profile.stats.total_posts == 1
    assert profile.stats.total_connections == 2


def test_unaffiliated_user_has_no_connections(db: Session, make_user):
    user = make_user()
    make_user()

    assert count_connections(db, user) == 0


def test_update_replaces_skills_and_clubs(db: Session, make_user, make_club):
    simba = make_club(slug="simba-sc")
    yanga = make_club(slug="yanga-sc")
    user = make_user(skills=["Python", "Cooking"], club_ids=[simba.id])

    result = update_user_profile(
        db,
        user.id,
        ProfileUpdate(
            profession="  Engineer ",
            skills=["SQL", "Python", "SQL"],
            club_ids=[yanga.id, yanga.id],
        ),
    )

    assert result.success
    assert result.data.profession == "Engineer"
    assert sorted(result.data.skills) == ["Python", "SQL"]
    assert result.data.club_ids == [yanga.id]


def test_explicit_null_clears_provider(db: Session, make_user, make_provider, make_institution):
    provider = make_provider()
    institution = make_institution()
    user = make_user(provider_id=provider.id, institution_id=institution.id)

    result = update_user_profile(db, user.id, ProfileUpdate(provider_id=None))

    assert result.success
    assert result.data.provider_id is None
    assert result.data.institution_id == institution.id


def test_duplicate_email_is_rejected(db: Session, make_user):
    make_user(email="taken@example.com")
    user = make_user()

    result = update_user_profile(db, user.id, ProfileUpdate(email="taken@example.com"))

    assert not result.success
    assert result.invalid
    assert result.error == "Email or phone number already in use"


def test_unknown_club_is_rejected_and_nothing_changes(db: Session, make_user, make_club):
    club = make_club()
    user = make_user(club_ids=[club.id], profession="Chef")

    result = update_user_profile(
        db, user.id, ProfileUpdate(profession="Baker", club_ids=[club.id, 999])
    )

    assert result.invalid
    assert "999" in result.error
    db.expire_all()
    refreshed = get_user_profile(db, user.id).data
    assert refreshed.profession == "Chef"
    assert refreshed.club_ids == [club.id]


def test_unknown_provider_is_rejected(db: Session, make_user):
    user = make_user()

    result = update_user_profile(db, user.id, ProfileUpdate(provider_id=42))

    assert result.invalid
    assert result.error == "Provider 42 does not exist"


def test_update_for_unknown_user(db: Session):
    result = update_user_profile(db, 404, ProfileUpdate(first_name="Ghost"))

    assert result.not_found


def test_blank_names_leave_the_old_value(db: Session, make_user):
    user = make_user(first_name="Asha", last_name="Mollel")

    result = update_user_profile(
        db, user.id, ProfileUpdate(first_name="   ", last_name="  Juma ")
    )

    assert result.success
    assert result.data.first_name == "Asha"
    assert result.data.last_name == "Juma"
