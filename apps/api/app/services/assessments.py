"""Assessment lifecycle: in-progress -> completed -> submitted."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.core.errors import NotFoundError
from apps.api.app.db.models import (
    ACTIVE_ASSESSMENT_STATUSES,
    ASSESSMENT_COMPLETED,
    ASSESSMENT_SUBMITTED,
    Assessment,
)
from apps.api.app.services.answers import parse_answers, serialize_answer
from apps.api.app.services.audit import log_structured_event
from apps.api.app.services.identifiers import ASSESSMENT_ID_PREFIX, allocate_sequential_id
from apps.api.app.services.uploads import StoredUpload


def _normalized_answers(raw: Mapping[str, Any] | None) -> dict[str, str | list[str]]:
    return {key: serialize_answer(answer) for key, answer in parse_answers(raw).items()}


def get_active_assessment(db: Session, company_id: str) -> Assessment | None:
    return db.scalar(
        select(Assessment)
        .where(
            Assessment.company_id == company_id,
            Assessment.status.in_(ACTIVE_ASSESSMENT_STATUSES),
        )
        .order_by(Assessment.created_at.desc(), Assessment.id.desc())
        .limit(1)
    )


def require_active_assessment(db: Session, company_id: str) -> Assessment:
    assessment = get_active_assessment(db, company_id)
    if assessment is None:
        raise NotFoundError("no active assessment", code="no_active_assessment")
    return assessment


def get_or_create_active_assessment(
    db: Session, company_id: str, *, max_attempts: int
) -> tuple[Assessment, bool]:
    """Continue the active assessment, or start an empty one; returns (assessment, created)."""
    existing = get_active_assessment(db, company_id)
    if existing is not None:
        return existing, False

    assessment = Assessment(
        company_id=company_id,
        general_answers={},
        industry_answers={},
        uploaded_documents={},
    )
    allocate_sequential_id(
        db,
        assessment,
        column=Assessment.assessment_id,
        prefix=ASSESSMENT_ID_PREFIX,
        max_attempts=max_attempts,
    )
    db.commit()
    db.refresh(assessment)
    log_structured_event(
        "assessment.started",
        company_id=company_id,
        assessment_id=assessment.assessment_id,
    )
    return assessment, True


def save_answers(
    db: Session,
    company_id: str,
    *,
    general_answers: Mapping[str, Any] | None,
    industry_answers: Mapping[str, Any] | None,
    submit: bool,
    now: datetime,
) -> Assessment:
    """Replace both answer maps; submitting also stamps the submission date."""
    assessment = require_active_assessment(db, company_id)
    assessment.general_answers = _normalized_answers(general_answers)
    assessment.industry_answers = _normalized_answers(industry_answers)
    if submit:
        assessment.status = ASSESSMENT_SUBMITTED
        assessment.submission_date = now
    else:
        assessment.status = ASSESSMENT_COMPLETED
    assessment.last_modified = now
    db.commit()
    db.refresh(assessment)
    log_structured_event(
        "assessment.saved",
        company_id=company_id,
        assessment_id=assessment.assessment_id,
        status=assessment.status,
        general_count=len(assessment.general_answers),
        industry_count=len(assessment.industry_answers),
    )
    return assessment


def submit_assessment(db: Session, company_id: str, *, now: datetime) -> Assessment:
    assessment = db.scalar(
        select(Assessment)
        .where(
            Assessment.company_id == company_id,
            Assessment.status == ASSESSMENT_COMPLETED,
        )
        .order_by(Assessment.created_at.desc(), Assessment.id.desc())
        .limit(1)
    )
    if assessment is None:
        raise NotFoundError("no completed assessment to submit", code="no_completed_assessment")
    assessment.status = ASSESSMENT_SUBMITTED
    assessment.submission_date = now
    assessment.last_modified = now
    db.commit()
    db.refresh(assessment)
    log_structured_event(
        "assessment.submitted",
        company_id=company_id,
        assessment_id=assessment.assessment_id,
    )
    return assessment


def latest_submitted_assessment(db: Session, company_id: str) -> Assessment | None:
    return db.scalar(
        select(Assessment)
        .where(
            Assessment.company_id == company_id,
            Assessment.status == ASSESSMENT_SUBMITTED,
        )
        .order_by(
            Assessment.submission_date.desc(),
            Assessment.created_at.desc(),
            Assessment.id.desc(),
        )
        .limit(1)
    )


def latest_assessment(db: Session, company_id: str) -> Assessment | None:
    return db.scalar(
        select(Assessment)
        .where(Assessment.company_id == company_id)
        .order_by(Assessment.created_at.desc(), Assessment.id.desc())
        .limit(1)
    )


def attach_upload(
    db: Session, company_id: str, *, question_id: str, upload: StoredUpload
) -> Assessment:
    assessment = require_active_assessment(db, company_id)
    documents = dict(assessment.uploaded_documents or {})
    documents[question_id] = upload.as_metadata()
    # Reassign so the JSON column is flagged dirty.
    assessment.uploaded_documents = documents
    db.commit()
    db.refresh(assessment)
    log_structured_event(
        "upload.accepted",
        company_id=company_id,
        assessment_id=assessment.assessment_id,
        question_id=question_id,
        filename=upload.filename,
        size=upload.size,
    )
    return assessment
