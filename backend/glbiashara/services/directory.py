"""
Read-only directory of providers, clubs, institutions and companies.

Entity `content` JSON is validated against the per-kind models in
glbiashara.schemas.directory before it is served.
"""
import logging
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from glbiashara.core.config import settings
from glbiashara.models import Provider, Club, Institution, Company
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.directory import (
    ProviderContent,
    ServiceBundle,
    ClubContent,
    InstitutionContent,
    CompanyContent,
    ProviderResponse,
    ClubResponse,
    InstitutionResponse,
    CompanyResponse,
)

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=BaseModel)


def parse_content(model: Type[C], raw, entity_label: str) -> Optional[C]:
    """
    Validate a content blob. Invalid content is logged and served as None
    so one bad seed entry never takes a whole listing down.
    """
    if raw is None:
        return None
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        logger.warning("Invalid content for %s: %s", entity_label, e)
        return None


def parse_services(raw, entity_label: str) -> List[ServiceBundle]:
    bundles = []
    for item in raw or []:
        bundle = parse_content(ServiceBundle, item, entity_label)
        if bundle is not None:
            bundles.append(bundle)
    return bundles


def provider_response(provider: Provider) -> ProviderResponse:
    label = f"provider:{provider.slug}"
    return ProviderResponse(
        id=provider.id,
        name=provider.name,
        slug=provider.slug,
        logo=provider.logo,
        is_active=provider.is_active,
        content=parse_content(ProviderContent, provider.content, label),
        services=parse_services(provider.services, label),
    )


def club_response(club: Club) -> ClubResponse:
    return ClubResponse(
        id=club.id,
        name=club.name,
        slug=club.slug,
        sport=club.sport,
        logo=club.logo,
        is_active=club.is_active,
        content=parse_content(ClubContent, club.content, f"club:{club.slug}"),
    )


def institution_response(institution: Institution) -> InstitutionResponse:
    return InstitutionResponse(
        id=institution.id,
        name=institution.name,
        slug=institution.slug,
        level=institution.level,
        logo=institution.logo,
        is_active=institution.is_active,
        content=parse_content(InstitutionContent, institution.content, f"institution:{institution.slug}"),
    )


def company_response(company: Company) -> CompanyResponse:
    return CompanyResponse(
        id=company.id,
        name=company.name,
        slug=company.slug,
        industry=company.industry,
        logo=company.logo,
        is_active=company.is_active,
        content=parse_content(CompanyContent, company.content, f"company:{company.slug}"),
    )


# kind -> (model, response builder)
DIRECTORY = {
    "provider": (Provider, provider_response),
    "club": (Club, club_response),
    "institution": (Institution, institution_response),
    "company": (Company, company_response),
}


def list_entities(db: Session, kind: str) -> ServiceResult:
    """Active entities of a kind, ordered by name."""
    model, to_response = DIRECTORY[kind]
    try:
        rows = db.query(model).filter(model.is_active.is_(True)).order_by(model.name).all()
        return ServiceResult.ok([to_response(row) for row in rows])
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error listing %s entities", kind)
        return ServiceResult.failure(f"Failed to fetch {kind} list")


def get_entity_by_slug(db: Session, kind: str, slug: str) -> ServiceResult:
    model, to_response = DIRECTORY[kind]
    try:
        row = db.query(model).filter(model.slug == slug).first()
        if row is None:
            return ServiceResult.missing(f"{kind.capitalize()} not found")
        return ServiceResult.ok(to_response(row))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error fetching %s by slug: %s", kind, slug)
        return ServiceResult.failure(f"Failed to fetch {kind}")


def search_providers(db: Session, query: str) -> ServiceResult:
    """
    Active providers whose name or slug contains query, ignoring case.

    A blank query returns an empty list rather than every provider.
    """
    term = (query or "").strip()
    if not term:
        return ServiceResult.ok([])

    pattern = f"%{term}%"
    try:
        rows = (
            db.query(Provider)
            .filter(
                Provider.is_active.is_(True),
                sa.or_(Provider.name.ilike(pattern), Provider.slug.ilike(pattern)),
            )
            .order_by(Provider.name)
            .limit(settings.PROVIDER_SEARCH_LIMIT)
            .all()
        )
        return ServiceResult.ok([provider_response(row) for row in rows])
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error searching providers: query=%s", term)
        return ServiceResult.failure("Failed to search providers")
