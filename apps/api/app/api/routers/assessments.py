"""Questionnaire endpoints for the authenticated company."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from apps.api.app.core.auth import CompanyContext, require_company_context
from apps.api.app.core.config import get_settings
from apps.api.app.db.models import Assessment
from apps.api.app.db.session import get_db_session
from apps.api.app.services.assessments import (
    attach_upload,
    get_or_create_active_assessment,
    require_active_assessment,
    save_answers,
    submit_assessment,
)
from apps.api.app.services.questions import Question, QuestionBank
from apps.api.app.services.uploads import store_upload

router = APIRouter(prefix="/assessment", tags=["assessment"])

AnswerValue = str | list[str]


class AssessmentItem(BaseModel):
    assessment_id: str
    status: str
    general_answers: dict[str, Any]
    industry_answers: dict[str, Any]
    uploaded_documents: dict[str, Any]
    submission_date: datetime | None
    last_modified: datetime


class AssessmentStartResponse(BaseModel):
    created: bool
    industry: str
    assessment: AssessmentItem
    general_questions: list[Question]
    industry_questions: list[Question]


class SaveAnswersRequest(BaseModel):
    general_answers: dict[str, AnswerValue] = Field(default_factory=dict)
    industry_answers: dict[str, AnswerValue] = Field(default_factory=dict)
    submit: bool = False


def get_question_bank() -> QuestionBank:
    return QuestionBank(get_settings().question_bank_root)


def assessment_item(assessment: Assessment) -> AssessmentItem:
    return AssessmentItem(
        assessment_id=assessment.assessment_id,
        status=assessment.status,
        general_answers=dict(assessment.general_answers or {}),
        industry_answers=dict(assessment.industry_answers or {}),
        uploaded_documents=dict(assessment.uploaded_documents or {}),
        submission_date=assessment.submission_date,
        last_modified=assessment.last_modified,
    )


@router.get("", response_model=AssessmentStartResponse)
def start_assessment(
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
    bank: QuestionBank = Depends(get_question_bank),
) -> AssessmentStartResponse:
    """Continue the active assessment or start a new one."""
    questions = bank.questions_for(company.industry)
    assessment, created = get_or_create_active_assessment(
        db,
        company.company_id,
        max_attempts=get_settings().id_allocation_max_attempts,
    )
    return AssessmentStartResponse(
        created=created,
        industry=company.industry,
        assessment=assessment_item(assessment),
        general_questions=questions.general,
        industry_questions=questions.industry,
    )


@router.post("/save", response_model=AssessmentItem)
def save_assessment(
    payload: SaveAnswersRequest,
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
) -> AssessmentItem:
    assessment = save_answers(
        db,
        company.company_id,
        general_answers=payload.general_answers,
        industry_answers=payload.industry_answers,
        submit=payload.submit,
        now=datetime.utcnow(),
    )
    return assessment_item(assessment)


@router.post("/submit", response_model=AssessmentItem)
def submit(
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
) -> AssessmentItem:
    return assessment_item(submit_assessment(db, company.company_id, now=datetime.utcnow()))


@router.post("/uploads/{question_id}", response_model=AssessmentItem)
async def upload_supporting_document(
    question_id: str,
    file: UploadFile | None = File(default=None),
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
) -> AssessmentItem:
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": "invalid_upload_request", "message": "file is required"},
        )
    # Fail before touching storage when there is nothing to attach to.
    require_active_assessment(db, company.company_id)

    settings = get_settings()
    # One byte past the cap is enough to reject an oversized file.
    content = await file.read(settings.upload_max_bytes + 1)
    upload = store_upload(
        company_id=company.company_id,
        original_name=file.filename or "upload",
        media_type=file.content_type,
        content=content,
        settings=settings,
        now=datetime.utcnow(),
    )
    assessment = attach_upload(db, company.company_id, question_id=question_id, upload=upload)
    return assessment_item(assessment)
