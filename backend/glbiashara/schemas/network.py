from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from glbiashara.models import EntityType


class UserSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    profession: Optional[str] = None
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class SimilarUser(UserSummary):
    skills: List[str] = []
    club_ids: List[int] = []
    provider_id: Optional[int] = None
    institution_id: Optional[int] = None
    match_score: int = 0  # number of matched axes, 1..5
    match_reasons: List[str] = []  # subset of profession|skills|clubs|provider|institution
    shared_skills: List[str] = []
    shared_club_ids: List[int] = []


class SellerSummary(UserSummary):
    business_type: Optional[str] = None


class ProductSummary(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    price: float
    currency: str
    media_urls: List[str] = []
    category: Optional[str] = None
    tags: List[str] = []


class ConnectedBusiness(ProductSummary):
    """A product flattened together with the user selling it."""
    seller: SellerSummary


class InterconnectivityStats(BaseModel):
    total_users: int
    total_providers: int
    total_clubs: int
    total_institutions: int
    total_businesses: int
    total_connections: int
    connected_users: int
    connection_rate: int  # percent, 0 when there are no users


class ProviderCard(BaseModel):
    id: int
    name: str
    slug: str
    logo: Optional[str] = None

    class Config:
        from_attributes = True


class ClubCard(ProviderCard):
    sport: Optional[str] = None


class InstitutionCard(ProviderCard):
    level: Optional[str] = None


class Recommendations(BaseModel):
    providers: List[ProviderCard] = []
    clubs: List[ClubCard] = []
    institutions: List[InstitutionCard] = []
    products: List[ConnectedBusiness] = []
    users: List[SimilarUser] = []


class NetworkActivity(BaseModel):
    id: int
    type: str
    content_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    created_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class NetworkUser(UserSummary):
    skills: List[str] = []
    club_ids: List[int] = []
    provider: Optional[ProviderCard] = None
    institution: Optional[InstitutionCard] = None
    clubs: List[ClubCard] = []


class UserNetwork(BaseModel):
    user: NetworkUser
    similar_users: List[SimilarUser] = []
    network_activities: List[NetworkActivity] = []


class ConnectRequest(BaseModel):
    entity_type: EntityType
    entity_id: int


class ConnectionResult(BaseModel):
    entity_type: EntityType
    entity_id: int
    created: bool  # False when the user was already connected
    message: str
