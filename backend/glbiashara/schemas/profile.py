from pydantic import BaseModel, EmailStr
from typing import Optional, List
from datetime import datetime
from glbiashara.schemas.network import ProviderCard, ClubCard, InstitutionCard


class ProfileStats(BaseModel):
    total_posts: int
    total_products: int
    total_connections: int


class UserProfile(BaseModel):
    id: int
    email: str
    phone: Optional[str] = None
    first_name: str
    last_name: str
    avatar: Optional[str] = None
    profession: Optional[str] = None
    business_type: Optional[str] = None
    skills: List[str] = []
    club_ids: List[int] = []
    provider_id: Optional[int] = None
    institution_id: Optional[int] = None
    provider: Optional[ProviderCard] = None
    institution: Optional[InstitutionCard] = None
    clubs: List[ClubCard] = []
    stats: Optional[ProfileStats] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """
    Partial profile update. Omitted fields are left untouched.

    `provider_id` / `institution_id` may be sent as null to clear the
    affiliation; `skills` and `club_ids` replace the whole set.
    """
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    profession: Optional[str] = None
    business_type: Optional[str] = None
    skills: Optional[List[str]] = None
    club_ids: Optional[List[int]] = None
    provider_id: Optional[int] = None
    institution_id: Optional[int] = None
