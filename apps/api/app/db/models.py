"""ORM models for companies, assessments and compliance reports."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from apps.api.app.db.base import Base

INDUSTRIES = (
    "Manufacturing",
    "IT/Technology",
    "Healthcare",
    "Finance",
    "Retail",
    "Construction",
    "Energy",
    "Agriculture",
    "Transportation",
    "Chemicals",
    "Textile",
    "Pharmaceuticals",
    "Automobile",
    "Paper and Packaging",
    "Other Manufacturing",
    "Education",
    "Technology",
    "Other",
)

ASSESSMENT_IN_PROGRESS = "in-progress"
ASSESSMENT_COMPLETED = "completed"
ASSESSMENT_SUBMITTED = "submitted"
ACTIVE_ASSESSMENT_STATUSES = (ASSESSMENT_IN_PROGRESS, ASSESSMENT_COMPLETED)

_JSONType = JSON().with_variant(JSONB, "postgresql")


class Company(Base):
    __tablename__ = "company"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    industry: Mapped[str] = mapped_column(String(64), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    registration_date: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Assessment(Base):
    __tablename__ = "assessment"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    assessment_id: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    company_id: Mapped[str] = mapped_column(
        ForeignKey("company.company_id"), nullable=False, index=True
    )
    general_answers: Mapped[dict] = mapped_column(_JSONType, nullable=False, default=dict)
    industry_answers: Mapped[dict] = mapped_column(_JSONType, nullable=False, default=dict)
    uploaded_documents: Mapped[dict] = mapped_column(_JSONType, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ASSESSMENT_IN_PROGRESS, index=True
    )
    submission_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    last_modified: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class ComplianceReport(Base):
    __tablename__ = "compliance_report"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)
    company_id: Mapped[str] = mapped_column(
        ForeignKey("company.company_id"), nullable=False, index=True
    )
    assessment_id: Mapped[str] = mapped_column(
        ForeignKey("assessment.assessment_id"), nullable=False, index=True
    )
    report_data: Mapped[dict] = mapped_column(_JSONType, nullable=False, default=dict)
    ai_suggestions: Mapped[dict] = mapped_column(_JSONType, nullable=False, default=dict)
    ai_source: Mapped[str] = mapped_column(String(16), nullable=False, default="fallback")
    ai_model: Mapped[str | None] = mapped_column(String(128), nullable=True)
    ai_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_timestamp: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    summary_source: Mapped[str] = mapped_column(String(16), nullable=False, default="fallback")
    summary_model: Mapped[str | None] = mapped_column(String(128), nullable=True)
    summary_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    generated_date: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_downloaded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
