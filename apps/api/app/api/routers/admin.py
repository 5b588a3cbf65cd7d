"""Platform administration endpoints (admin API key)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from apps.api.app.api.routers.assessments import (
    AssessmentItem,
    assessment_item,
    get_question_bank,
)
from apps.api.app.api.routers.reports import ReportItem, report_item
from apps.api.app.core.auth import AuthContext, require_admin_context
from apps.api.app.db.session import get_db_session
from apps.api.app.services.assessments import latest_assessment
from apps.api.app.services.audit import log_structured_event
from apps.api.app.services.companies import get_company
from apps.api.app.services.questions import Question, QuestionBank
from apps.api.app.services.reporting import compliance_scores, latest_report, platform_stats

router = APIRouter(prefix="/admin", tags=["admin"])


class RecentReportItem(BaseModel):
    report_id: str
    company_id: str
    compliance_score: int
    generated_date: datetime


class AdminStatsResponse(BaseModel):
    total_companies: int
    total_assessments: int
    total_reports: int
    recent_reports: list[RecentReportItem]


class ComplianceScoreItem(BaseModel):
    report_id: str
    company_id: str
    company_name: str
    industry: str
    compliance_score: int
    generated_date: datetime


class ComplianceScoreListResponse(BaseModel):
    scores: list[ComplianceScoreItem]


class QuestionSetResponse(BaseModel):
    set_name: str
    questions: list[Question]


class QuestionSetListResponse(BaseModel):
    set_names: list[str]


class QuestionResponse(BaseModel):
    set_name: str
    question: Question


class CompanySummary(BaseModel):
    company_id: str
    company_name: str
    email: str
    industry: str
    registration_date: datetime


class CompanyReportResponse(BaseModel):
    company: CompanySummary
    report: ReportItem | None
    assessment: AssessmentItem | None


def _score(report_data: dict[str, Any] | None) -> int:
    return int((report_data or {}).get("compliance_score", 0))


@router.get("/stats", response_model=AdminStatsResponse)
def stats(
    admin: AuthContext = Depends(require_admin_context),
    db: Session = Depends(get_db_session),
) -> AdminStatsResponse:
    snapshot = platform_stats(db)
    return AdminStatsResponse(
        total_companies=snapshot.total_companies,
        total_assessments=snapshot.total_assessments,
        total_reports=snapshot.total_reports,
        recent_reports=[
            RecentReportItem(
                report_id=report.report_id,
                company_id=report.company_id,
                compliance_score=_score(report.report_data),
                generated_date=report.generated_date,
            )
            for report in snapshot.recent_reports
        ],
    )


@router.get("/compliance-scores", response_model=ComplianceScoreListResponse)
def list_compliance_scores(
    admin: AuthContext = Depends(require_admin_context),
    db: Session = Depends(get_db_session),
) -> ComplianceScoreListResponse:
    return ComplianceScoreListResponse(
        scores=[
            ComplianceScoreItem(
                report_id=report.report_id,
                company_id=company.company_id,
                company_name=company.company_name,
                industry=company.industry,
                compliance_score=_score(report.report_data),
                generated_date=report.generated_date,
            )
            for report, company in compliance_scores(db)
        ]
    )


@router.get("/questions", response_model=QuestionSetListResponse)
def list_question_sets(
    admin: AuthContext = Depends(require_admin_context),
    bank: QuestionBank = Depends(get_question_bank),
) -> QuestionSetListResponse:
    return QuestionSetListResponse(set_names=bank.set_names())


@router.get("/questions/{set_name}", response_model=QuestionSetResponse)
def read_question_set(
    set_name: str,
    admin: AuthContext = Depends(require_admin_context),
    bank: QuestionBank = Depends(get_question_bank),
) -> QuestionSetResponse:
    return QuestionSetResponse(set_name=set_name, questions=bank.read_set(set_name))


@router.put("/questions/{set_name}", response_model=QuestionSetResponse)
def write_question_set(
    set_name: str,
    questions: list[dict[str, Any]] = Body(...),
    admin: AuthContext = Depends(require_admin_context),
    bank: QuestionBank = Depends(get_question_bank),
) -> QuestionSetResponse:
    saved = bank.write_set(set_name, questions)
    log_structured_event("questions.updated", set_name=set_name, question_count=len(saved))
    return QuestionSetResponse(set_name=set_name, questions=saved)


@router.post(
    "/questions/{set_name}",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_question(
    set_name: str,
    question: dict[str, Any] = Body(...),
    admin: AuthContext = Depends(require_admin_context),
    bank: QuestionBank = Depends(get_question_bank),
) -> QuestionResponse:
    """Append one question; an `id` is allocated when the payload omits it."""
    saved = bank.add_question(set_name, question)
    log_structured_event("questions.question_added", set_name=set_name, question_id=saved.id)
    return QuestionResponse(set_name=set_name, question=saved)


@router.put("/questions/{set_name}/{question_id}", response_model=QuestionResponse)
def update_question(
    set_name: str,
    question_id: str,
    question: dict[str, Any] = Body(...),
    admin: AuthContext = Depends(require_admin_context),
    bank: QuestionBank = Depends(get_question_bank),
) -> QuestionResponse:
    saved = bank.update_question(set_name, question_id, question)
    log_structured_event("questions.question_updated", set_name=set_name, question_id=question_id)
    return QuestionResponse(set_name=set_name, question=saved)


@router.delete(
    "/questions/{set_name}/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_question(
    set_name: str,
    question_id: str,
    admin: AuthContext = Depends(require_admin_context),
    bank: QuestionBank = Depends(get_question_bank),
) -> None:
    bank.delete_question(set_name, question_id)
    log_structured_event("questions.question_deleted", set_name=set_name, question_id=question_id)


@router.get("/companies/{company_id}/report", response_model=CompanyReportResponse)
def company_report(
    company_id: str,
    admin: AuthContext = Depends(require_admin_context),
    db: Session = Depends(get_db_session),
) -> CompanyReportResponse:
    """Latest report and latest assessment of any company."""
    company = get_company(db, company_id)
    report = latest_report(db, company.company_id)
    assessment = latest_assessment(db, company.company_id)
    return CompanyReportResponse(
        company=CompanySummary(
            company_id=company.company_id,
            company_name=company.company_name,
            email=company.email,
            industry=company.industry,
            registration_date=company.registration_date,
        ),
        report=report_item(db, report) if report is not None else None,
        assessment=assessment_item(assessment) if assessment is not None else None,
    )
