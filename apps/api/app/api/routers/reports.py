"""Compliance report endpoints for the authenticated company."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from apps.api.app.core.auth import CompanyContext, require_company_context
from apps.api.app.core.config import get_settings
from apps.api.app.core.errors import NotFoundError
from apps.api.app.db.models import ComplianceReport
from apps.api.app.db.session import get_db_session
from apps.api.app.services.companies import get_company
from apps.api.app.services.llm_provider import build_narrative_composer
from apps.api.app.services.narrative import NarrativeComposer
from apps.api.app.services.pdf_export import build_report_pdf, report_filename
from apps.api.app.services.reporting import (
    assessment_for_report,
    find_report,
    get_or_create_report,
    latest_report,
    record_download,
    regenerate_report,
)
from apps.api.app.services.scoring import build_assessment_analytics

router = APIRouter(prefix="/reports", tags=["reports"])


class ProvenanceItem(BaseModel):
    source: str
    model: str | None
    error: str | None


class AnalyticsItem(BaseModel):
    total_questions: int
    total_general: int
    total_industry: int
    high_quality: int
    medium_quality: int
    basic_response: int


class ReportItem(BaseModel):
    report_id: str
    assessment_id: str
    compliance_score: int
    report_data: dict[str, Any]
    ai_suggestions: dict[str, Any]
    summary_provenance: ProvenanceItem
    suggestions_provenance: ProvenanceItem
    ai_timestamp: datetime | None
    generated_date: datetime
    download_count: int
    is_downloaded: bool
    analytics: AnalyticsItem


class ReportGenerateResponse(ReportItem):
    created: bool


def get_narrative_composer() -> NarrativeComposer:
    return build_narrative_composer(get_settings())


def report_item(db: Session, report: ComplianceReport) -> ReportItem:
    report_data = dict(report.report_data or {})
    assessment = assessment_for_report(db, report)
    analytics = build_assessment_analytics(assessment.general_answers, assessment.industry_answers)
    return ReportItem(
        report_id=report.report_id,
        assessment_id=report.assessment_id,
        compliance_score=int(report_data.get("compliance_score", 0)),
        report_data=report_data,
        ai_suggestions=dict(report.ai_suggestions or {}),
        summary_provenance=ProvenanceItem(
            source=report.summary_source,
            model=report.summary_model,
            error=report.summary_error,
        ),
        suggestions_provenance=ProvenanceItem(
            source=report.ai_source,
            model=report.ai_model,
            error=report.ai_error,
        ),
        ai_timestamp=report.ai_timestamp,
        generated_date=report.generated_date,
        download_count=report.download_count,
        is_downloaded=report.is_downloaded,
        analytics=AnalyticsItem(**asdict(analytics)),
    )


@router.get("", response_model=ReportItem)
def get_latest_report(
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
) -> ReportItem:
    report = latest_report(db, company.company_id)
    if report is None:
        raise NotFoundError("no report generated yet", code="report_not_found")
    return report_item(db, report)


@router.post("/generate", response_model=ReportGenerateResponse)
def generate_report(
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
    composer: NarrativeComposer = Depends(get_narrative_composer),
) -> ReportGenerateResponse:
    report, created = get_or_create_report(
        db,
        get_company(db, company.company_id),
        composer,
        max_attempts=get_settings().id_allocation_max_attempts,
    )
    return ReportGenerateResponse(created=created, **report_item(db, report).model_dump())


@router.post("/regenerate", response_model=ReportItem, status_code=status.HTTP_201_CREATED)
def regenerate(
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
    composer: NarrativeComposer = Depends(get_narrative_composer),
) -> ReportItem:
    report = regenerate_report(
        db,
        get_company(db, company.company_id),
        composer,
        max_attempts=get_settings().id_allocation_max_attempts,
    )
    return report_item(db, report)


@router.get("/{report_id}", response_model=ReportItem)
def get_report(
    report_id: str,
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
) -> ReportItem:
    return report_item(db, find_report(db, company.company_id, report_id))


def _pdf_response(
    db: Session, report: ComplianceReport, *, company_id: str, disposition: str
) -> Response:
    company = get_company(db, company_id)
    downloaded_at = datetime.utcnow()
    pdf_bytes = build_report_pdf(
        report=report,
        company=company,
        assessment=assessment_for_report(db, report),
        generated_at=report.generated_date,
        downloaded_at=downloaded_at,
        product_name=get_settings().report_product_name,
    )
    filename = report_filename(company.company_name, downloaded_at)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
    )


@router.get("/{report_id}/pdf")
def view_report_pdf(
    report_id: str,
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
) -> Response:
    report = find_report(db, company.company_id, report_id)
    return _pdf_response(db, report, company_id=company.company_id, disposition="inline")


@router.get("/{report_id}/download")
def download_report_pdf(
    report_id: str,
    company: CompanyContext = Depends(require_company_context),
    db: Session = Depends(get_db_session),
) -> Response:
    report = find_report(db, company.company_id, report_id)
    response = _pdf_response(db, report, company_id=company.company_id, disposition="attachment")
    record_download(db, report)
    return response
