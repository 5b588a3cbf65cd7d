"""Company registration and login endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from apps.api.app.core.auth import AuthContext, require_auth_context
from apps.api.app.core.config import get_settings
from apps.api.app.db.models import INDUSTRIES, Company
from apps.api.app.db.session import get_db_session
from apps.api.app.services.companies import authenticate_company, register_company

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    industry: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        local, _, domain = value.strip().partition("@")
        if not local or "." not in domain:
            raise ValueError("email must look like name@example.com")
        return value.strip()


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class CompanyProfile(BaseModel):
    company_id: str
    company_name: str
    email: str
    industry: str
    registration_date: datetime


class IndustryListResponse(BaseModel):
    industries: list[str]


def _profile(company: Company) -> CompanyProfile:
    return CompanyProfile(
        company_id=company.company_id,
        company_name=company.company_name,
        email=company.email,
        industry=company.industry,
        registration_date=company.registration_date,
    )


@router.get("/industries", response_model=IndustryListResponse)
def list_industries(auth: AuthContext = Depends(require_auth_context)) -> IndustryListResponse:
    return IndustryListResponse(industries=list(INDUSTRIES))


@router.post("/register", response_model=CompanyProfile, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    auth: AuthContext = Depends(require_auth_context),
    db: Session = Depends(get_db_session),
) -> CompanyProfile:
    company = register_company(
        db,
        company_name=payload.company_name,
        email=payload.email,
        password=payload.password,
        industry=payload.industry,
        max_attempts=get_settings().id_allocation_max_attempts,
    )
    return _profile(company)


@router.post("/login", response_model=CompanyProfile)
def login(
    payload: LoginRequest,
    auth: AuthContext = Depends(require_auth_context),
    db: Session = Depends(get_db_session),
) -> CompanyProfile:
    """Verify credentials; the returned company_id is sent as X-Company-ID afterwards."""
    company = authenticate_company(db, email=payload.email, password=payload.password)
    return _profile(company)
