from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from glbiashara.database import get_db
from glbiashara.core.auth import get_current_user
from glbiashara.models import User
from glbiashara.routers.network import raise_for_failure
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.profile import UserProfile, ProfileUpdate
from glbiashara.services import profile as profile_service

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ServiceResult[UserProfile])
def get_profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return raise_for_failure(profile_service.get_user_profile(db, user.id))


@router.patch("", response_model=ServiceResult[UserProfile])
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Update the current user's profile.

    skills / club_ids replace the whole set. Sending provider_id or
    institution_id as null clears that affiliation.
    """
    result = raise_for_failure(profile_service.update_user_profile(db, user.id, payload))
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return result
