"""API key auth and company principal resolution."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.core.config import get_settings
from apps.api.app.db.models import Company
from apps.api.app.db.session import get_db_session


@dataclass(frozen=True)
class AuthContext:
    api_key: str


@dataclass(frozen=True)
class CompanyContext:
    """Authenticated company principal for one request."""

    company_id: str
    company_name: str
    industry: str


def _parse_csv(value: str) -> frozenset[str]:
    return frozenset(item.strip() for item in value.split(",") if item.strip())


def validate_auth_configuration(
    *,
    security_enabled: bool,
    auth_api_keys: str,
    admin_api_keys: str,
) -> None:
    if not security_enabled:
        return
    if not _parse_csv(auth_api_keys):
        raise ValueError(
            "Invalid auth configuration: at least one API key must be configured "
            "when security is enabled"
        )
    if not _parse_csv(admin_api_keys):
        raise ValueError(
            "Invalid auth configuration: at least one admin key must be configured "
            "when security is enabled"
        )


@lru_cache
def _resolve_key_sets(
    *,
    auth_api_keys: str,
    admin_api_keys: str,
) -> tuple[frozenset[str], frozenset[str]]:
    return _parse_csv(auth_api_keys), _parse_csv(admin_api_keys)


def require_auth_context(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> AuthContext:
    settings = get_settings()
    if not settings.security_enabled:
        return AuthContext(api_key="disabled")

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing api key",
        )
    api_keys, _ = _resolve_key_sets(
        auth_api_keys=settings.auth_api_keys,
        admin_api_keys=settings.admin_api_keys,
    )
    if x_api_key not in api_keys:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="invalid api key",
        )
    return AuthContext(api_key=x_api_key)


def require_company_context(
    x_company_id: str | None = Header(default=None, alias="X-Company-ID"),
    auth: AuthContext = Depends(require_auth_context),
    db: Session = Depends(get_db_session),
) -> CompanyContext:
    if not x_company_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing company id",
        )
    company = db.scalar(select(Company).where(Company.company_id == x_company_id))
    if company is None or not company.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="unknown or inactive company",
        )
    return CompanyContext(
        company_id=company.company_id,
        company_name=company.company_name,
        industry=company.industry,
    )


def require_admin_context(
    x_admin_key: str | None = Header(default=None, alias="X-Admin-Key"),
) -> AuthContext:
    settings = get_settings()
    if not settings.security_enabled:
        return AuthContext(api_key="disabled")
    if not x_admin_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="missing admin key",
        )
    _, admin_keys = _resolve_key_sets(
        auth_api_keys=settings.auth_api_keys,
        admin_api_keys=settings.admin_api_keys,
    )
    if x_admin_key not in admin_keys:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="invalid admin key",
        )
    return AuthContext(api_key=x_admin_key)
