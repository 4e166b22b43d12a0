"""
Typed views of the `content` / `services` JSON columns.

Each entity kind stores free-form JSON authored by the content team. The
models below pin down the keys the pages actually read so that a typo or
a wrong type in a seed file surfaces as a validation error instead of a
broken page. Unknown keys are ignored.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Literal


class _Content(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Banner(_Content):
    type: Literal["image", "video"] = "image"
    url: str
    title: Optional[str] = None
    description: Optional[str] = None


class Testimonial(_Content):
    name: str
    quote: str
    profession: Optional[str] = None
    business: Optional[str] = None
    avatar: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class ProviderContent(_Content):
    description: Optional[str] = None
    website: Optional[str] = None
    services: List[str] = []
    about: Optional[str] = None
    founded: Optional[str] = None
    headquarters: Optional[str] = None
    employees: Optional[str] = None
    coverage: Optional[str] = None
    awards: List[str] = []
    social_media: Dict[str, str] = Field(default_factory=dict, alias="socialMedia")
    banners: List[Banner] = []
    testimonials: List[Testimonial] = []
    total_users: Optional[int] = Field(default=None, alias="totalUsers")
    active_users: Optional[int] = Field(default=None, alias="activeUsers")


class ServiceBundle(_Content):
    """A purchasable bundle listed on a provider page."""
    name: str
    price: float
    currency: str = "TZS"
    validity: Optional[str] = None
    description: Optional[str] = None
    features: List[str] = []
    popular: bool = False


class ClubContent(_Content):
    description: Optional[str] = None
    founded: Optional[str] = None
    stadium: Optional[str] = None
    achievements: List[str] = []


class InstitutionContent(_Content):
    description: Optional[str] = None
    established: Optional[str] = None
    faculties: List[str] = []
    students: Optional[int] = None


class CompanyContent(_Content):
    description: Optional[str] = None
    founded: Optional[str] = None
    employees: Optional[int] = None
    services: List[str] = []


class ProviderResponse(BaseModel):
    id: int
    name: str
    slug: str
    logo: Optional[str] = None
    is_active: bool
    content: Optional[ProviderContent] = None
    services: List[ServiceBundle] = []


class ClubResponse(BaseModel):
    id: int
    name: str
    slug: str
    sport: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool
    content: Optional[ClubContent] = None


class InstitutionResponse(BaseModel):
    id: int
    name: str
    slug: str
    level: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool
    content: Optional[InstitutionContent] = None


class CompanyResponse(BaseModel):
    id: int
    name: str
    slug: str
    industry: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool
    content: Optional[CompanyContent] = None
