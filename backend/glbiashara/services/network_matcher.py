"""
Network matcher.

Finds users who share something with a given user (profession, a skill,
a club, their provider or their institution) and collects the businesses
run by users connected to a provider, club or institution.

Matching is a plain OR across the five axes: one shared attribute is
enough to be "similar". The number of shared axes is only used to order
results so the closest people come first.

All public functions take the session as an argument and never raise for
database errors; they return a ServiceResult instead so page code can
render an empty section.
"""
import functools
import logging
import operator
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from glbiashara.core.config import settings
from glbiashara.models import (
    User,
    UserSkill,
    ClubMembership,
    Product,
    Provider,
    Club,
    Institution,
    EntityType,
)
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.network import (
    SimilarUser,
    SellerSummary,
    ConnectedBusiness,
    InterconnectivityStats,
)

logger = logging.getLogger(__name__)

SimilarUsersResult = ServiceResult[List[SimilarUser]]
BusinessesResult = ServiceResult[List[ConnectedBusiness]]
StatsResult = ServiceResult[InterconnectivityStats]


def coerce_entity_type(value) -> Optional[EntityType]:
    """Return the EntityType for value, or None if it is not provider/club/institution."""
    try:
        return EntityType(value)
    except ValueError:
        return None


def load_user(db: Session, user_id: int) -> Optional[User]:
    """Fetch a user with the skill and club rows the matcher reads."""
    return (
        db.query(User)
        .options(selectinload(User.skill_entries), selectinload(User.club_memberships))
        .filter(User.id == user_id)
        .first()
    )


def _similarity_conditions(target: User) -> Dict[str, sa.ColumnElement]:
    """
    Build one SQL predicate per axis the target can match on.

    Axes the target leaves empty are skipped entirely: a null profession or
    an empty skill set must never match other users with the same gap.
    """
    conditions = {}
    if target.profession:
        conditions["profession"] = User.profession == target.profession
    if target.skills:
        conditions["skills"] = User.skill_entries.any(UserSkill.name.in_(target.skills))
    if target.club_ids:
        conditions["clubs"] = User.club_memberships.any(ClubMembership.club_id.in_(target.club_ids))
    if target.provider_id is not None:
        conditions["provider"] = User.provider_id == target.provider_id
    if target.institution_id is not None:
        conditions["institution"] = User.institution_id == target.institution_id
    return conditions


def describe_match(target: User, candidate: User) -> SimilarUser:
    """Shape a matched candidate for display, listing what it shares with target."""
    target_skills = set(target.skills)
    target_clubs = set(target.club_ids)
    shared_skills = [skill for skill in candidate.skills if skill in target_skills]
    shared_club_ids = [club_id for club_id in candidate.club_ids if club_id in target_clubs]

    reasons = []
    if target.profession and candidate.profession == target.profession:
        reasons.append("profession")
    if shared_skills:
        reasons.append("skills")
    if shared_club_ids:
        reasons.append("clubs")
    if target.provider_id is not None and candidate.provider_id == target.provider_id:
        reasons.append("provider")
    if target.institution_id is not None and candidate.institution_id == target.institution_id:
        reasons.append("institution")

    return SimilarUser(
        id=candidate.id,
        first_name=candidate.first_name,
        last_name=candidate.last_name,
        profession=candidate.profession,
        avatar=candidate.avatar,
        skills=candidate.skills,
        club_ids=candidate.club_ids,
        provider_id=candidate.provider_id,
        institution_id=candidate.institution_id,
        match_score=len(reasons),
        match_reasons=reasons,
        shared_skills=shared_skills,
        shared_club_ids=shared_club_ids,
    )


def similar_users_for(db: Session, target: User, limit: Optional[int] = None) -> List[SimilarUser]:
    """
    Rank users sharing at least one axis with target, most shared axes first.

    Raises SQLAlchemyError; callers own the error boundary.
    """
    if limit is None:
        limit = settings.SIMILAR_USERS_LIMIT

    conditions = _similarity_conditions(target)
    if not conditions:
        return []

    match_score = functools.reduce(
        operator.add,
        (sa.case((condition, 1), else_=0) for condition in conditions.values()),
    ).label("match_score")

    rows = (
        db.query(User, match_score)
        .options(selectinload(User.skill_entries), selectinload(User.club_memberships))
        .filter(User.id != target.id, sa.or_(*conditions.values()))
        .order_by(match_score.desc(), User.id)
        .limit(limit)
        .all()
    )
    return [describe_match(target, candidate) for candidate, _score in rows]


def find_similar_users(db: Session, user_id: int, limit: Optional[int] = None) -> SimilarUsersResult:
    """
    Find up to SIMILAR_USERS_LIMIT users similar to user_id.

    Never includes user_id itself. An unknown user gives an empty,
    not_found result rather than an error.
    """
    try:
        target = load_user(db, user_id)
        if target is None:
            return SimilarUsersResult.missing("User not found", data=[])

        similar = similar_users_for(db, target, limit=limit)
        logger.debug("Found %d similar users for user_id=%s", len(similar), user_id)
        return SimilarUsersResult.ok(similar)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error finding similar users: user_id=%s", user_id)
        return SimilarUsersResult.failure("Failed to find similar users")


def to_connected_business(product: Product, seller: User) -> ConnectedBusiness:
    return ConnectedBusiness(
        id=product.id,
        title=product.title,
        description=product.description,
        price=product.price,
        currency=product.currency,
        media_urls=product.media_urls or [],
        category=product.category,
        tags=product.tags,
        seller=SellerSummary.model_validate(seller),
    )


def _top_active_products(db: Session, user_ids: List[int], per_user: int) -> Dict[int, List[Product]]:
    """Return the first per_user active products (by id) of each user."""
    if not user_ids:
        return {}

    ranked = (
        db.query(
            Product.id.label("product_id"),
            sa.func.row_number()
            .over(partition_by=Product.user_id, order_by=Product.id)
            .label("seller_rank"),
        )
        .filter(Product.user_id.in_(user_ids), Product.is_active.is_(True))
        .subquery()
    )
    products = (
        db.query(Product)
        .join(ranked, Product.id == ranked.c.product_id)
        .filter(ranked.c.seller_rank <= per_user)
        .options(selectinload(Product.tag_entries))
        .order_by(Product.user_id, Product.id)
        .all()
    )

    by_user: Dict[int, List[Product]] = {}
    for product in products:
        by_user.setdefault(product.user_id, []).append(product)
    return by_user


def _flatten_businesses(db: Session, users: Iterable[User]) -> List[ConnectedBusiness]:
    """Cross users with their top products, keeping user order then product order."""
    users = list(users)
    products_by_user = _top_active_products(
        db, [user.id for user in users], settings.PRODUCTS_PER_SELLER
    )
    return [
        to_connected_business(product, user)
        for user in users
        for product in products_by_user.get(user.id, [])
    ]


def _connected_users_condition(entity_type: EntityType, entity_id: int):
    if entity_type == EntityType.PROVIDER:
        return User.provider_id == entity_id
    if entity_type == EntityType.CLUB:
        return User.club_memberships.any(ClubMembership.club_id == entity_id)
    return User.institution_id == entity_id


def get_connected_businesses(db: Session, entity_type, entity_id: int) -> BusinessesResult:
    """
    Businesses (active products) of users connected to a provider, club or institution.

    At most CONNECTED_USERS_LIMIT users are considered and at most
    PRODUCTS_PER_SELLER products are taken from each, so the result is
    bounded by their product. An unknown entity id yields an empty list.
    """
    kind = coerce_entity_type(entity_type)
    if kind is None:
        logger.warning("Unsupported entity type for connected businesses: %s", entity_type)
        return BusinessesResult.rejected("Unsupported entity type")

    try:
        users = (
            db.query(User)
            .filter(_connected_users_condition(kind, entity_id))
            .order_by(User.id)
            .limit(settings.CONNECTED_USERS_LIMIT)
            .all()
        )
        return BusinessesResult.ok(_flatten_businesses(db, users))
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Error getting connected user businesses: entity_type=%s, entity_id=%s",
            kind.value,
            entity_id,
        )
        return BusinessesResult.failure("Failed to get connected user businesses")


def get_all_user_businesses(db: Session) -> BusinessesResult:
    """
    Businesses from any seller on the platform.

    Used on pages of entities users cannot affiliate with (companies such
    as DSTV or CRDB).
    """
    try:
        users = (
            db.query(User)
            .filter(User.products.any(Product.is_active.is_(True)))
            .order_by(User.id)
            .limit(settings.ALL_BUSINESSES_USER_LIMIT)
            .all()
        )
        return BusinessesResult.ok(_flatten_businesses(db, users))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error getting all user businesses")
        return BusinessesResult.failure("Failed to get all user businesses")


def connection_rate(connected_users: int, total_users: int) -> int:
    """Percentage of connected users, rounded half up; 0 for an empty platform."""
    if total_users <= 0:
        return 0
    rate = Decimal(connected_users * 100) / Decimal(total_users)
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def get_interconnectivity_stats(db: Session) -> StatsResult:
    """
    Platform-wide connectivity counts.

    The counts are independent queries, so concurrent writes may skew them
    slightly against each other. If any count fails the whole result fails.
    """
    has_provider = User.provider_id.isnot(None)
    has_institution = User.institution_id.isnot(None)
    has_club = User.club_memberships.any()

    try:
        total_users = db.query(User).count()
        total_providers = db.query(Provider).filter(Provider.is_active.is_(True)).count()
        total_clubs = db.query(Club).filter(Club.is_active.is_(True)).count()
        total_institutions = db.query(Institution).filter(Institution.is_active.is_(True)).count()
        total_businesses = db.query(Product).filter(Product.is_active.is_(True)).count()
        connected_users = (
            db.query(User).filter(sa.or_(has_provider, has_institution, has_club)).count()
        )

        provider_connections = db.query(User).filter(has_provider).count()
        institution_connections = db.query(User).filter(has_institution).count()
        club_connections = db.query(User).filter(has_club).count()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error getting interconnectivity stats")
        return StatsResult.failure("Failed to get interconnectivity stats")

    return StatsResult.ok(
        InterconnectivityStats(
            total_users=total_users,
            total_providers=total_providers,
            total_clubs=total_clubs,
            total_institutions=total_institutions,
            total_businesses=total_businesses,
            total_connections=provider_connections + institution_connections + club_connections,
            connected_users=connected_users,
            connection_rate=connection_rate(connected_users, total_users),
        )
    )
