"""
Profile reads and edits.

Profile edits are the main way matcher inputs change: profession, skills,
clubs, provider and institution all come from here.
"""
import logging
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from glbiashara.models import (
    User,
    UserSkill,
    ClubMembership,
    Club,
    Provider,
    Institution,
    Product,
    FeedItem,
)
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.network import ProviderCard, InstitutionCard, ClubCard
from glbiashara.schemas.profile import UserProfile, ProfileStats, ProfileUpdate

logger = logging.getLogger(__name__)

ProfileResult = ServiceResult[UserProfile]


class ProfileValidationError(ValueError):
    """Raised for profile input that is well-formed but not acceptable."""


def normalize_skills(skills: List[str]) -> List[str]:
    """Trim, drop blanks and de-duplicate, keeping first-seen order."""
    seen = []
    for skill in skills:
        cleaned = (skill or "").strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def _dedupe_ids(ids: List[int]) -> List[int]:
    return list(dict.fromkeys(ids))


def _load_profile_user(db: Session, user_id: int) -> Optional[User]:
    return (
        db.query(User)
        .options(
            selectinload(User.skill_entries),
            selectinload(User.club_memberships),
            selectinload(User.provider),
            selectinload(User.institution),
        )
        .filter(User.id == user_id)
        .first()
    )


def count_connections(db: Session, user: User) -> int:
    """Other users sharing the user's provider, institution or any of their clubs."""
    conditions = []
    if user.provider_id is not None:
        conditions.append(User.provider_id == user.provider_id)
    if user.institution_id is not None:
        conditions.append(User.institution_id == user.institution_id)
    if user.club_ids:
        conditions.append(User.club_memberships.any(ClubMembership.club_id.in_(user.club_ids)))
    if not conditions:
        return 0
    return db.query(User).filter(User.id != user.id, sa.or_(*conditions)).count()


def _build_profile(db: Session, user: User, with_stats: bool = True) -> UserProfile:
    clubs = []
    if user.club_ids:
        clubs = db.query(Club).filter(Club.id.in_(user.club_ids)).order_by(Club.id).all()

    stats = None
    if with_stats:
        stats = ProfileStats(
            total_posts=db.query(FeedItem).filter(
                FeedItem.user_id == user.id, FeedItem.is_active.is_(True)
            ).count(),
            total_products=db.query(Product).filter(
                Product.user_id == user.id, Product.is_active.is_(True)
            ).count(),
            total_connections=count_connections(db, user),
        )

    return UserProfile(
        id=user.id,
        email=user.email,
        phone=user.phone,
        first_name=user.first_name,
        last_name=user.last_name,
        avatar=user.avatar,
        profession=user.profession,
        business_type=user.business_type,
        skills=user.skills,
        club_ids=user.club_ids,
        provider_id=user.provider_id,
        institution_id=user.institution_id,
        provider=ProviderCard.model_validate(user.provider) if user.provider else None,
        institution=InstitutionCard.model_validate(user.institution) if user.institution else None,
        clubs=[ClubCard.model_validate(c) for c in clubs],
        stats=stats,
        updated_at=user.updated_at,
    )


def get_user_profile(db: Session, user_id: int) -> ProfileResult:
    try:
        user = _load_profile_user(db, user_id)
        if user is None:
            return ProfileResult.missing("User not found")
        return ProfileResult.ok(_build_profile(db, user))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching user profile: user_id=%s", user_id)
        return ProfileResult.failure("Failed to fetch profile")


def _check_unique_contact(db: Session, user: User, payload: ProfileUpdate) -> None:
    conditions = []
    if payload.email:
        conditions.append(User.email == str(payload.email))
    if payload.phone:
        conditions.append(User.phone == payload.phone)
    if not conditions:
        return
    taken = db.query(User.id).filter(User.id != user.id, sa.or_(*conditions)).first()
    if taken:
        raise ProfileValidationError("Email or phone number already in use")


def _check_exists(db: Session, model, entity_id: int, label: str) -> None:
    if db.query(model.id).filter(model.id == entity_id).first() is None:
        raise ProfileValidationError(f"{label} {entity_id} does not exist")


def _replace_skills(user: User, skills: List[str]) -> None:
    wanted = normalize_skills(skills)
    user.skill_entries = [
        entry for entry in user.skill_entries if entry.name in wanted
    ] + [
        UserSkill(name=name) for name in wanted if name not in user.skills
    ]


def _replace_clubs(db: Session, user: User, club_ids: List[int]) -> None:
    wanted = _dedupe_ids(club_ids)
    if wanted:
        found = {row.id for row in db.query(Club.id).filter(Club.id.in_(wanted)).all()}
        missing = [club_id for club_id in wanted if club_id not in found]
        if missing:
            raise ProfileValidationError(f"Unknown club ids: {missing}")
    current = user.club_ids
    user.club_memberships = [
        membership for membership in user.club_memberships if membership.club_id in wanted
    ] + [
        ClubMembership(club_id=club_id) for club_id in wanted if club_id not in current
    ]


def update_user_profile(db: Session, user_id: int, payload: ProfileUpdate) -> ProfileResult:
    """
    Apply a partial profile update.

    Only fields present in the payload are touched. Validation problems
    (duplicate email/phone, unknown club/provider/institution) come back as
    a failed result with a message for the form.
    """
    changes = payload.model_dump(exclude_unset=True)

    try:
        user = _load_profile_user(db, user_id)
        if user is None:
            return ProfileResult.missing("User not found")

        _check_unique_contact(db, user, payload)

        for field in ("first_name", "last_name", "profession"):
            cleaned = (changes.get(field) or "").strip()
            if cleaned:
                setattr(user, field, cleaned)
        for field in ("phone", "avatar", "business_type"):
            if changes.get(field):
                setattr(user, field, changes[field])
        if changes.get("email"):
            user.email = str(changes["email"])

        if "skills" in changes and changes["skills"] is not None:
            _replace_skills(user, changes["skills"])
        if "club_ids" in changes and changes["club_ids"] is not None:
            _replace_clubs(db, user, changes["club_ids"])

        # Explicit null clears the affiliation
        if "provider_id" in changes:
            if changes["provider_id"] is not None:
                _check_exists(db, Provider, changes["provider_id"], "Provider")
            user.provider_id = changes["provider_id"]
        if "institution_id" in changes:
            if changes["institution_id"] is not None:
                _check_exists(db, Institution, changes["institution_id"], "Institution")
            user.institution_id = changes["institution_id"]

        db.commit()
        db.refresh(user)
        logger.info("Profile updated: user_id=%s fields=%s", user_id, sorted(changes))
        return ProfileResult.ok(_build_profile(db, user, with_stats=False))
    except ProfileValidationError as e:
        db.rollback()
        logger.info("Profile update rejected: user_id=%s reason=%s", user_id, e)
        return ProfileResult.rejected(str(e))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating profile: user_id=%s", user_id)
        return ProfileResult.failure("Failed to update profile")
