"""
Directory pages: providers, clubs, institutions and companies.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from glbiashara.database import get_db
from glbiashara.routers.network import raise_for_failure
from glbiashara.schemas.common import ServiceResult
from glbiashara.schemas.directory import (
    ProviderResponse,
    ClubResponse,
    InstitutionResponse,
    CompanyResponse,
)
from glbiashara.services import directory

router = APIRouter(tags=["directory"])


def _found(result: ServiceResult) -> ServiceResult:
    result = raise_for_failure(result)
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    return result


@router.get("/providers", response_model=ServiceResult[List[ProviderResponse]])
def list_providers(db: Session = Depends(get_db)):
    return raise_for_failure(directory.list_entities(db, "provider"))


@router.get("/providers/search", response_model=ServiceResult[List[ProviderResponse]])
def search_providers(q: str = Query("", max_length=100), db: Session = Depends(get_db)):
    """Active providers matching q by name or slug, at most PROVIDER_SEARCH_LIMIT."""
    return raise_for_failure(directory.search_providers(db, q))


@router.get("/providers/{slug}", response_model=ServiceResult[ProviderResponse])
def get_provider(slug: str, db: Session = Depends(get_db)):
    return _found(directory.get_entity_by_slug(db, "provider", slug))


@router.get("/clubs", response_model=ServiceResult[List[ClubResponse]])
def list_clubs(db: Session = Depends(get_db)):
    return raise_for_failure(directory.list_entities(db, "club"))


@router.get("/clubs/{slug}", response_model=ServiceResult[ClubResponse])
def get_club(slug: str, db: Session = Depends(get_db)):
    return _found(directory.get_entity_by_slug(db, "club", slug))


@router.get("/institutions", response_model=ServiceResult[List[InstitutionResponse]])
def list_institutions(db: Session = Depends(get_db)):
    return raise_for_failure(directory.list_entities(db, "institution"))


@router.get("/institutions/{slug}", response_model=ServiceResult[InstitutionResponse])
def get_institution(slug: str, db: Session = Depends(get_db)):
    return _found(directory.get_entity_by_slug(db, "institution", slug))


@router.get("/companies", response_model=ServiceResult[List[CompanyResponse]])
def list_companies(db: Session = Depends(get_db)):
    return raise_for_failure(directory.list_entities(db, "company"))


@router.get("/companies/{slug}", response_model=ServiceResult[CompanyResponse])
def get_company(slug: str, db: Session = Depends(get_db)):
    return _found(directory.get_entity_by_slug(db, "company", slug))
