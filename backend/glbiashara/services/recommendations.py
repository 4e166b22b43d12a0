"""
Recommendation assembly and the "my network" view.

Both are compositions over the network matcher and a few directory
queries; there is no scoring beyond what find_similar_users does.
"""
import logging
from typing import List

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from glbiashara.core.config import settings
from glbiashara.models import (
    User,
    Provider,
    Club,
    Institution,
    Product,
    ProductTag,
    FeedItem,
    FeedItemType,
)
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.network import (
    Recommendations,
    ProviderCard,
    ClubCard,
    InstitutionCard,
    SimilarUser,
    NetworkUser,
    NetworkActivity,
    UserNetwork,
)
from glbiashara.services.network_matcher import (
    find_similar_users,
    load_user,
    to_connected_business,
)

logger = logging.getLogger(__name__)

RecommendationsResult = ServiceResult[Recommendations]
UserNetworkResult = ServiceResult[UserNetwork]


def _similar_users_or_empty(db: Session, user_id: int) -> List[SimilarUser]:
    """Similar users for the page sections; a failed lookup just leaves the section empty."""
    result = find_similar_users(db, user_id)
    if not result.success:
        logger.warning("Similar users unavailable for user_id=%s: %s", user_id, result.error)
        return []
    return result.data or []


def _recommended_clubs(db: Session, user: User) -> List[Club]:
    conditions = []
    if user.club_ids:
        conditions.append(Club.id.in_(user.club_ids))
    # Clubs whose sport is listed among the user's skills ("Football")
    if settings.RECOMMEND_CLUBS_BY_SPORT_SKILL and user.skills:
        conditions.append(Club.sport.in_(user.skills))
    if not conditions:
        return []
    return db.query(Club).filter(sa.or_(*conditions)).order_by(Club.id).all()


def _recommended_products(db: Session, user: User) -> List[Product]:
    conditions = []
    if user.skills:
        conditions.append(Product.tag_entries.any(ProductTag.name.in_(user.skills)))
    if user.profession:
        conditions.append(Product.category == user.profession)
    if not conditions:
        return []
    return (
        db.query(Product)
        .options(selectinload(Product.user), selectinload(Product.tag_entries))
        .filter(Product.is_active.is_(True), sa.or_(*conditions))
        .order_by(Product.id)
        .limit(settings.RECOMMENDED_PRODUCTS_LIMIT)
        .all()
    )


def get_personalized_recommendations(db: Session, user_id: int) -> RecommendationsResult:
    """
    Everything worth showing a user on the network page:

    - all active providers
    - clubs the user belongs to, plus clubs whose sport is one of their skills
    - up to RECOMMENDED_INSTITUTIONS_LIMIT active institutions
    - up to RECOMMENDED_PRODUCTS_LIMIT active products tagged with one of
      their skills or in the category of their profession
    - similar users
    """
    try:
        user = load_user(db, user_id)
        if user is None:
            return RecommendationsResult.missing("User not found")

        providers = (
            db.query(Provider)
            .filter(Provider.is_active.is_(True))
            .order_by(Provider.id)
            .all()
        )
        institutions = (
            db.query(Institution)
            .filter(Institution.is_active.is_(True))
            .order_by(Institution.id)
            .limit(settings.RECOMMENDED_INSTITUTIONS_LIMIT)
            .all()
        )
        clubs = _recommended_clubs(db, user)
        products = _recommended_products(db, user)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error getting recommendations: user_id=%s", user_id)
        return RecommendationsResult.failure("Failed to get recommendations")

    return RecommendationsResult.ok(
        Recommendations(
            providers=[ProviderCard.model_validate(p) for p in providers],
            clubs=[ClubCard.model_validate(c) for c in clubs],
            institutions=[InstitutionCard.model_validate(i) for i in institutions],
            products=[to_connected_business(p, p.user) for p in products],
            users=_similar_users_or_empty(db, user_id),
        )
    )


def _network_activities(
    db: Session, user: User, similar_users: List[SimilarUser]
) -> List[FeedItem]:
    """Recent feed items by similar users or about the user's own affiliations."""
    conditions = []
    if similar_users:
        conditions.append(FeedItem.user_id.in_([u.id for u in similar_users]))
    if user.provider_id is not None:
        conditions.append(sa.and_(
            FeedItem.type == FeedItemType.PROVIDER.value,
            FeedItem.content_id == user.provider_id,
        ))
    if user.club_ids:
        conditions.append(sa.and_(
            FeedItem.type == FeedItemType.CLUB.value,
            FeedItem.content_id.in_(user.club_ids),
        ))
    if user.institution_id is not None:
        conditions.append(sa.and_(
            FeedItem.type == FeedItemType.INSTITUTION.value,
            FeedItem.content_id == user.institution_id,
        ))
    if not conditions:
        return []

    return (
        db.query(FeedItem)
        .options(selectinload(FeedItem.user))
        .filter(FeedItem.is_active.is_(True), sa.or_(*conditions))
        .order_by(FeedItem.created_at.desc(), FeedItem.id.desc())
        .limit(settings.NETWORK_ACTIVITY_LIMIT)
        .all()
    )


def get_user_network(db: Session, user_id: int) -> UserNetworkResult:
    """The user's affiliations, similar users and recent activity in their network."""
    try:
        user = (
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
        if user is None:
            return UserNetworkResult.missing("User not found")

        clubs = []
        if user.club_ids:
            clubs = db.query(Club).filter(Club.id.in_(user.club_ids)).order_by(Club.id).all()

        similar_users = _similar_users_or_empty(db, user_id)
        activities = _network_activities(db, user, similar_users)

        network_user = NetworkUser(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            profession=user.profession,
            avatar=user.avatar,
            skills=user.skills,
            club_ids=user.club_ids,
            provider=ProviderCard.model_validate(user.provider) if user.provider else None,
            institution=InstitutionCard.model_validate(user.institution) if user.institution else None,
            clubs=[ClubCard.model_validate(c) for c in clubs],
        )
        return UserNetworkResult.ok(
            UserNetwork(
                user=network_user,
                similar_users=similar_users,
                network_activities=[NetworkActivity.model_validate(a) for a in activities],
            )
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error getting user network: user_id=%s", user_id)
        return UserNetworkResult.failure("Failed to get user network")
