"""Company registration and credential checks."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from apps.api.app.core.errors import AuthenticationError, NotFoundError, ValidationError
from apps.api.app.db.models import INDUSTRIES, Company
from apps.api.app.services.audit import log_structured_event
from apps.api.app.services.identifiers import COMPANY_ID_PREFIX, allocate_sequential_id

MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_company(db: Session, company_id: str) -> Company:
    company = db.scalar(select(Company).where(Company.company_id == company_id))
    if company is None:
        raise NotFoundError(f"company not found: {company_id}", code="company_not_found")
    return company


def register_company(
    db: Session,
    *,
    company_name: str,
    email: str,
    password: str,
    industry: str,
    max_attempts: int,
) -> Company:
    name = company_name.strip()
    normalized_email = normalize_email(email)
    if not name:
        raise ValidationError("company name is required")
    if industry not in INDUSTRIES:
        raise ValidationError(f"unknown industry: {industry}", code="unknown_industry")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters", code="weak_password"
        )
    if db.scalar(select(Company.id).where(Company.email == normalized_email)) is not None:
        raise ValidationError("email is already registered", code="email_taken")

    company = Company(
        company_name=name,
        email=normalized_email,
        password_hash=generate_password_hash(password),
        industry=industry,
    )
    allocate_sequential_id(
        db,
        company,
        column=Company.company_id,
        prefix=COMPANY_ID_PREFIX,
        max_attempts=max_attempts,
    )
    db.commit()
    db.refresh(company)
    log_structured_event(
        "company.registered",
        company_id=company.company_id,
        industry=company.industry,
    )
    return company


def authenticate_company(db: Session, *, email: str, password: str) -> Company:
    normalized_email = normalize_email(email)
    company = db.scalar(select(Company).where(Company.email == normalized_email))
    if (
        company is None
        or not company.is_active
        or not check_password_hash(company.password_hash, password)
    ):
        log_structured_event("company.login_failed", email=normalized_email)
        raise AuthenticationError("invalid email or password")
    log_structured_event("company.login", company_id=company.company_id)
    return company
