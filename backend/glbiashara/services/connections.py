"""
Connecting a user to a provider, club or institution.
"""
import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from glbiashara.models import (
    User,
    Provider,
    Club,
    Institution,
    ClubMembership,
    EntityType,
    FeedItemType,
)
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.network import ConnectionResult
from glbiashara.services.network_matcher import coerce_entity_type
from glbiashara.utils.activity import log_activity

logger = logging.getLogger(__name__)

ConnectResult = ServiceResult[ConnectionResult]

ENTITY_MODELS = {
    EntityType.PROVIDER: Provider,
    EntityType.CLUB: Club,
    EntityType.INSTITUTION: Institution,
}


def _result(kind: EntityType, entity_id: int, created: bool) -> ConnectResult:
    message = (
        f"Successfully connected to {kind.value}"
        if created
        else f"Already connected to {kind.value}"
    )
    return ConnectResult.ok(
        ConnectionResult(entity_type=kind, entity_id=entity_id, created=created, message=message)
    )


def connect_to_entity(db: Session, user_id: int, entity_type, entity_id: int) -> ConnectResult:
    """
    Affiliate user_id with a provider, club or institution.

    - provider / institution replace the user's single affiliation.
    - club adds a membership; joining a club twice is a no-op.

    A `connection` activity item is recorded only when something changed.
    Club membership rows are unique per (user, club), so two concurrent
    joins cannot lose each other's clubs: the loser of a duplicate insert
    gets IntegrityError and is reported as already connected.
    """
    kind = coerce_entity_type(entity_type)
    if kind is None:
        logger.warning("Unsupported entity type for connect: %s", entity_type)
        return ConnectResult.rejected("Unsupported entity type")

    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            return ConnectResult.missing("User not found")

        model = ENTITY_MODELS[kind]
        entity = db.query(model).filter(model.id == entity_id).first()
        if entity is None:
            return ConnectResult.missing(f"{kind.value.capitalize()} not found")

        if kind == EntityType.CLUB:
            existing = db.query(ClubMembership.id).filter(
                ClubMembership.user_id == user.id,
                ClubMembership.club_id == entity_id,
            ).first()
            created = existing is None
            if created:
                db.add(ClubMembership(user_id=user.id, club_id=entity_id))
        elif kind == EntityType.PROVIDER:
            created = user.provider_id != entity_id
            user.provider_id = entity_id
        else:
            created = user.institution_id != entity_id
            user.institution_id = entity_id

        if created:
            log_activity(
                db,
                FeedItemType.CONNECTION,
                user_id=user.id,
                title=f"Connected to {kind.value}",
                content_id=entity_id,
                description=f"User connected to a new {kind.value}",
            )
        db.commit()
        logger.info(
            "User %s connect to %s %s (created=%s)", user_id, kind.value, entity_id, created
        )
        return _result(kind, entity_id, created)

    except IntegrityError:
        db.rollback()
        if kind == EntityType.CLUB:
            # Another request inserted the same membership between our check and insert
            logger.debug(
                "Duplicate club membership (race condition): user_id=%s, club_id=%s",
                user_id,
                entity_id,
            )
            return _result(kind, entity_id, created=False)
        logger.exception("Integrity error connecting user %s to %s %s", user_id, kind.value, entity_id)
        return ConnectResult.failure("Failed to connect to entity")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error connecting user %s to %s %s", user_id, kind.value, entity_id)
        return ConnectResult.failure("Failed to connect to entity")
