"""
Marketplace listings grouped by the community selling them.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from glbiashara.database import get_db
from glbiashara.models import EntityType
from glbiashara.routers.network import raise_for_failure
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.network import ConnectedBusiness
from glbiashara.services import network_matcher

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.get("", response_model=ServiceResult[List[ConnectedBusiness]])
def list_all_businesses(db: Session = Depends(get_db)):
    """Businesses from sellers anywhere on the platform (company pages)."""
    return raise_for_failure(network_matcher.get_all_user_businesses(db))


@router.get("/{entity_type}/{entity_id}", response_model=ServiceResult[List[ConnectedBusiness]])
def list_connected_businesses(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
):
    """Businesses of users connected to a provider, club or institution."""
    return raise_for_failure(
        network_matcher.get_connected_businesses(db, entity_type, entity_id)
    )
