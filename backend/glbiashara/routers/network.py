from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from glbiashara.database import get_db
from glbiashara.core.auth import get_current_user
from glbiashara.models import User
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.network import (
    SimilarUser,
    Recommendations,
    UserNetwork,
    InterconnectivityStats,
    ConnectRequest,
    ConnectionResult,
)
from glbiashara.services import network_matcher, recommendations, connections

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/network", tags=["network"])


def raise_for_failure(result: ServiceResult) -> ServiceResult:
    """Map a failed service result onto an HTTP error; pass anything else through."""
    if result.success:
        return result
    if result.invalid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)


@router.get("/users/{user_id}/similar", response_model=ServiceResult[List[SimilarUser]])
def get_similar_users(user_id: int, db: Session = Depends(get_db)):
    """
    Users sharing a profession, skill, club, provider or institution with user_id.

    An unknown user is not an error: the envelope comes back with
    not_found=true and an empty list.
    """
    return raise_for_failure(network_matcher.find_similar_users(db, user_id))


@router.get("/recommendations", response_model=ServiceResult[Recommendations])
def get_recommendations(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    logger.info("Fetching network recommendations for user %s", user.id)
    return raise_for_failure(recommendations.get_personalized_recommendations(db, user.id))


@router.get("/me", response_model=ServiceResult[UserNetwork])
def get_my_network(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return raise_for_failure(recommendations.get_user_network(db, user.id))


@router.post("/connect", response_model=ServiceResult[ConnectionResult])
def connect(
    payload: ConnectRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Connect the current user to a provider, club or institution."""
    result = raise_for_failure(
        connections.connect_to_entity(db, user.id, payload.entity_type, payload.entity_id)
    )
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return result


@router.get("/stats", response_model=ServiceResult[InterconnectivityStats])
def get_stats(db: Session = Depends(get_db)):
    return raise_for_failure(network_matcher.get_interconnectivity_stats(db))
