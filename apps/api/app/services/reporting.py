"""Compliance report generation and lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from apps.api.app.core.errors import NotFoundError
from apps.api.app.db.models import Assessment, Company, ComplianceReport
from apps.api.app.services.assessments import latest_submitted_assessment
from apps.api.app.services.audit import log_structured_event
from apps.api.app.services.identifiers import REPORT_ID_PREFIX, allocate_sequential_id
from apps.api.app.services.narrative import (
    NarrativeComposer,
    NarrativeContext,
    NarrativeResult,
    Provenance,
    SuggestionsResult,
)
from apps.api.app.services.scoring import ComplianceEvaluation, evaluate_compliance

RECENT_REPORT_LIMIT = 10


@dataclass(frozen=True)
class GeneratedReport:
    evaluation: ComplianceEvaluation
    summary: NarrativeResult
    suggestions: SuggestionsResult

    @property
    def report_data(self) -> dict[str, Any]:
        return {
            "summary": self.summary.text,
            "compliance_score": self.evaluation.score,
            "industry_observations": self.evaluation.industry_observations,
            "weak_areas": list(self.evaluation.weak_areas),
            "strengths": list(self.evaluation.strengths),
            "recommendations": list(self.evaluation.recommendations),
        }

    @property
    def ai_suggestions(self) -> dict[str, Any]:
        return self.suggestions.suggestions.model_dump()


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def generate_report_data(
    assessment: Assessment, company: Company, composer: NarrativeComposer
) -> GeneratedReport:
    """Score the submitted answers, then compose the narrative around the score."""
    evaluation = evaluate_compliance(
        assessment.general_answers,
        assessment.industry_answers,
        industry=company.industry,
    )
    context = NarrativeContext(
        company_name=company.company_name,
        industry=company.industry,
        general_answers=assessment.general_answers or {},
        industry_answers=assessment.industry_answers or {},
    )
    return GeneratedReport(
        evaluation=evaluation,
        summary=composer.compose_summary(context, score=evaluation.score),
        suggestions=composer.compose_suggestions(context),
    )


def _apply_provenance(report: ComplianceReport, *, summary: Provenance, ai: Provenance) -> None:
    report.summary_source = summary.source
    report.summary_model = summary.model
    report.summary_error = summary.error
    report.ai_source = ai.source
    report.ai_model = ai.model
    report.ai_error = ai.error
    report.ai_timestamp = _naive_utc(ai.timestamp)


def _persist_generated_report(
    db: Session,
    *,
    company: Company,
    assessment: Assessment,
    generated: GeneratedReport,
    max_attempts: int,
) -> ComplianceReport:
    report = ComplianceReport(
        company_id=company.company_id,
        assessment_id=assessment.assessment_id,
        report_data=generated.report_data,
        ai_suggestions=generated.ai_suggestions,
    )
    _apply_provenance(
        report,
        summary=generated.summary.provenance,
        ai=generated.suggestions.provenance,
    )
    return allocate_sequential_id(
        db,
        report,
        column=ComplianceReport.report_id,
        prefix=REPORT_ID_PREFIX,
        max_attempts=max_attempts,
    )


def require_submitted_assessment(db: Session, company_id: str) -> Assessment:
    assessment = latest_submitted_assessment(db, company_id)
    if assessment is None:
        raise NotFoundError("no submitted assessment", code="no_submitted_assessment")
    return assessment


def get_or_create_report(
    db: Session,
    company: Company,
    composer: NarrativeComposer,
    *,
    max_attempts: int,
) -> tuple[ComplianceReport, bool]:
    """Return the report of the latest submitted assessment, generating it once."""
    assessment = require_submitted_assessment(db, company.company_id)
    existing = db.scalar(
        select(ComplianceReport)
        .where(
            ComplianceReport.company_id == company.company_id,
            ComplianceReport.assessment_id == assessment.assessment_id,
        )
        .order_by(ComplianceReport.generated_date.desc(), ComplianceReport.id.desc())
        .limit(1)
    )
    if existing is not None:
        return existing, False

    generated = generate_report_data(assessment, company, composer)
    report = _persist_generated_report(
        db,
        company=company,
        assessment=assessment,
        generated=generated,
        max_attempts=max_attempts,
    )
    db.commit()
    db.refresh(report)
    log_structured_event(
        "report.generated",
        company_id=company.company_id,
        report_id=report.report_id,
        assessment_id=assessment.assessment_id,
        compliance_score=generated.evaluation.score,
        summary_source=report.summary_source,
        ai_source=report.ai_source,
        ai_error=report.ai_error,
    )
    return report, True


def regenerate_report(
    db: Session,
    company: Company,
    composer: NarrativeComposer,
    *,
    max_attempts: int,
) -> ComplianceReport:
    """Replace every report of the company with a freshly generated one."""
    assessment = require_submitted_assessment(db, company.company_id)
    removed_ids = list(
        db.scalars(
            select(ComplianceReport.report_id).where(
                ComplianceReport.company_id == company.company_id
            )
        )
    )

    generated = generate_report_data(assessment, company, composer)
    # The replacement is inserted before the delete so its id is never a reused one.
    report = _persist_generated_report(
        db,
        company=company,
        assessment=assessment,
        generated=generated,
        max_attempts=max_attempts,
    )
    db.execute(
        delete(ComplianceReport).where(
            ComplianceReport.company_id == company.company_id,
            ComplianceReport.report_id.in_(removed_ids),
        )
    )
    db.commit()
    db.refresh(report)
    log_structured_event(
        "report.regenerated",
        company_id=company.company_id,
        report_id=report.report_id,
        removed_report_ids=removed_ids,
        compliance_score=generated.evaluation.score,
        summary_source=report.summary_source,
        ai_source=report.ai_source,
        ai_error=report.ai_error,
    )
    return report


def latest_report(db: Session, company_id: str) -> ComplianceReport | None:
    return db.scalar(
        select(ComplianceReport)
        .where(ComplianceReport.company_id == company_id)
        .order_by(ComplianceReport.generated_date.desc(), ComplianceReport.id.desc())
        .limit(1)
    )


def find_report(db: Session, company_id: str, report_id: str) -> ComplianceReport:
    report = db.scalar(
        select(ComplianceReport).where(
            ComplianceReport.company_id == company_id,
            ComplianceReport.report_id == report_id,
        )
    )
    if report is None:
        raise NotFoundError(f"report not found: {report_id}", code="report_not_found")
    return report


def assessment_for_report(db: Session, report: ComplianceReport) -> Assessment:
    assessment = db.scalar(
        select(Assessment).where(Assessment.assessment_id == report.assessment_id)
    )
    if assessment is None:
        raise NotFoundError(
            f"assessment not found for report {report.report_id}", code="assessment_not_found"
        )
    return assessment


def record_download(db: Session, report: ComplianceReport) -> ComplianceReport:
    report.download_count = (report.download_count or 0) + 1
    report.is_downloaded = True
    db.commit()
    db.refresh(report)
    log_structured_event(
        "report.downloaded",
        company_id=report.company_id,
        report_id=report.report_id,
        download_count=report.download_count,
    )
    return report


@dataclass(frozen=True)
class PlatformStats:
    total_companies: int
    total_assessments: int
    total_reports: int
    recent_reports: list[ComplianceReport]


def platform_stats(db: Session, *, recent_limit: int = RECENT_REPORT_LIMIT) -> PlatformStats:
    recent = list(
        db.scalars(
            select(ComplianceReport)
            .order_by(ComplianceReport.generated_date.desc(), ComplianceReport.id.desc())
            .limit(recent_limit)
        )
    )
    return PlatformStats(
        total_companies=db.scalar(select(func.count()).select_from(Company)) or 0,
        total_assessments=db.scalar(select(func.count()).select_from(Assessment)) or 0,
        total_reports=db.scalar(select(func.count()).select_from(ComplianceReport)) or 0,
        recent_reports=recent,
    )


def compliance_scores(db: Session) -> list[tuple[ComplianceReport, Company]]:
    rows = db.execute(
        select(ComplianceReport, Company)
        .join(Company, Company.company_id == ComplianceReport.company_id)
        .order_by(ComplianceReport.generated_date.desc(), ComplianceReport.id.desc())
    ).all()
    return [(report, company) for report, company in rows]
