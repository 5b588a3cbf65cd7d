"""Paginated PDF rendering of a compliance report."""

from __future__ import annotations

import io
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4

from apps.api.app.services.answers import format_question_label, parse_answers
from apps.api.app.services.charts import (
    CATEGORY_COLORS,
    NEUTRAL,
    QUALITY_COLORS,
    draw_categories_chart,
    draw_compliance_chart,
    draw_quality_chart,
    score_band_color,
)
from apps.api.app.services.pagination import FooterCanvas, ReportPaginator, estimate_text_height
from apps.api.app.services.scoring import build_assessment_analytics

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
HEADER_HEIGHT = 140
BOTTOM_LIMIT = PAGE_HEIGHT - 70

PRIMARY = "#059669"
SECONDARY = "#065f46"
TEXT = "#333333"
MUTED = "#666666"
WHITE = "#ffffff"
BULLET_STRENGTH = "#059669"
BULLET_WEAK = "#ffc107"

PRIORITY_COLORS = {
    "Critical": "#dc3545",
    "High": "#fd7e14",
    "Medium": "#ffc107",
    "Low": "#28a745",
}

REPORT_TITLE = "SUSTAINABILITY ASSESSMENT REPORT"
REPORT_SUBTITLE = "Comprehensive Environmental, Social & Governance Analysis"
NO_STRENGTHS = "Continue your sustainability journey to build on your strengths."
NO_WEAK_AREAS = "Great job! No major areas of concern identified."
NO_IMPROVEMENTS = "No specific improvements identified at this time."

_FILENAME_UNSAFE = re.compile(r"[^a-zA-Z0-9]")


def report_filename(company_name: str, on_date: date | datetime) -> str:
    safe_name = _FILENAME_UNSAFE.sub("-", company_name)
    return f"sustainability-report-{safe_name}-{on_date.strftime('%Y-%m-%d')}.pdf"


def score_interpretation(score: int) -> str:
    if score >= 80:
        return "Excellent - Strong sustainability practices"
    if score >= 60:
        return "Good - Room for improvement"
    if score >= 40:
        return "Fair - Significant improvements needed"
    return "Poor - Immediate attention required"


def _format_date(value: date | datetime | None) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d")


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if str(item).strip()]


@dataclass(frozen=True)
class RenderedReport:
    pdf_bytes: bytes
    page_count: int
    footer_labels: list[str]
    placements_within_bounds: bool


class ReportDocumentBuilder:
    """Lays out report sections in fixed order over one paginator."""

    def __init__(
        self,
        *,
        report: Any,
        company: Any,
        assessment: Any,
        generated_at: datetime | None,
        downloaded_at: datetime | None,
        product_name: str,
    ) -> None:
        self.report = report
        self.company = company
        self.assessment = assessment
        self.generated_at = generated_at
        self.downloaded_at = downloaded_at
        self.product_name = product_name
        self.report_data: Mapping[str, Any] = report.report_data or {}
        self.suggestions: Mapping[str, Any] = report.ai_suggestions or {}
        self.general_answers = parse_answers(getattr(assessment, "general_answers", None))
        self.industry_answers = parse_answers(getattr(assessment, "industry_answers", None))
        self.analytics = build_assessment_analytics(self.general_answers, self.industry_answers)
        self._paginator: ReportPaginator | None = None

    @property
    def paginator(self) -> ReportPaginator:
        if self._paginator is None:
            raise RuntimeError("builder has no active canvas")
        return self._paginator

    def build(self) -> RenderedReport:
        buffer = io.BytesIO()
        canvas = FooterCanvas(
            buffer,
            pagesize=A4,
            invariant=1,
            product_name=self.product_name,
            report_id=self.report.report_id,
            footer_margin=MARGIN,
        )
        canvas.setTitle(f"Sustainability Report - {self.company.company_name}")
        canvas.setAuthor(self.product_name)
        self._paginator = ReportPaginator(
            canvas,
            page_height=PAGE_HEIGHT,
            top_margin=MARGIN,
            bottom_limit=BOTTOM_LIMIT,
            start_cursor=HEADER_HEIGHT + 30,
        )

        self._draw_header_band()
        self._draw_company_information()
        self._draw_score_badge()
        self._draw_score_breakdown()
        self._draw_analytics_table()
        self._draw_quality_distribution()
        self._draw_category_distribution()
        self._draw_paragraph_section("Executive Summary", self.report_data.get("summary", ""))
        self._draw_paragraph_section(
            "Industry-Specific Observations",
            self.report_data.get("industry_observations", ""),
        )
        self._draw_bullet_section(
            "Identified Strengths",
            _str_list(self.report_data.get("strengths")),
            color=BULLET_STRENGTH,
            placeholder=NO_STRENGTHS,
        )
        self._draw_bullet_section(
            "Areas for Improvement",
            _str_list(self.report_data.get("weak_areas")),
            color=BULLET_WEAK,
            placeholder=NO_WEAK_AREAS,
        )
        self._draw_recommendations()
        self._draw_transcript()

        canvas.showPage()
        canvas.save()
        paginator = self.paginator
        within_bounds = all(
            placement.bottom <= paginator.bottom_limit for placement in paginator.placements
        )
        self._paginator = None
        return RenderedReport(
            pdf_bytes=buffer.getvalue(),
            page_count=len(canvas.footer_labels),
            footer_labels=list(canvas.footer_labels),
            placements_within_bounds=within_bounds,
        )

    def _heading(self, text: str, *, size: float = 18, color: str = PRIMARY, gap: float = 12) -> None:
        paginator = self.paginator
        # Keep a heading together with at least one line of what follows it.
        paginator.ensure_space(size + gap + 30)
        top = paginator.reserve(size + gap)
        paginator.draw_text(text, x=MARGIN, top=top, font="Helvetica-Bold", size=size, color=color)
        paginator.advance(size + gap)

    def _key_value_rows(self, rows: Sequence[tuple[str, str]], *, value_x: float) -> None:
        paginator = self.paginator
        for label, value in rows:
            top = paginator.reserve(18)
            paginator.draw_text(label, x=MARGIN, top=top, font="Helvetica-Bold", size=11, color=TEXT)
            paginator.draw_text(value, x=value_x, top=top, font="Helvetica", size=11, color=TEXT)
            paginator.advance(18)
        paginator.advance(15)

    def _legend(self, entries: Sequence[tuple[str, str]], *, x: float, top: float) -> None:
        paginator = self.paginator
        canvas = paginator.canvas
        for index, (color, label) in enumerate(entries):
            row_top = top + index * 18
            canvas.setFillColor(HexColor(color))
            canvas.rect(x, paginator.pdf_y(row_top + 10), 10, 10, stroke=0, fill=1)
            paginator.draw_text(label, x=x + 16, top=row_top, font="Helvetica", size=10, color=TEXT)

    def _draw_header_band(self) -> None:
        paginator = self.paginator
        canvas = paginator.canvas
        canvas.setFillColor(HexColor(PRIMARY))
        canvas.rect(0, paginator.pdf_y(HEADER_HEIGHT), PAGE_WIDTH, HEADER_HEIGHT, stroke=0, fill=1)
        paginator.draw_text(
            REPORT_TITLE,
            x=PAGE_WIDTH / 2,
            top=45,
            font="Helvetica-Bold",
            size=22,
            color=WHITE,
            align="center",
        )
        paginator.draw_text(
            REPORT_SUBTITLE,
            x=PAGE_WIDTH / 2,
            top=85,
            font="Helvetica",
            size=12,
            color=WHITE,
            align="center",
        )

    def _draw_company_information(self) -> None:
        self._heading("Company Information")
        self._key_value_rows(
            [
                ("Company Name:", self.company.company_name),
                ("Industry:", self.company.industry),
                ("Email:", self.company.email),
                ("Report ID:", self.report.report_id),
                ("Generated:", _format_date(self.generated_at)),
                ("Downloaded:", _format_date(self.downloaded_at)),
            ],
            value_x=MARGIN + 110,
        )

    def _draw_score_badge(self) -> None:
        paginator = self.paginator
        canvas = paginator.canvas
        score = _int(self.report_data.get("compliance_score"))
        self._heading("Overall Compliance Score")
        top = paginator.reserve(70)
        center_y = top + 30
        canvas.setStrokeColor(HexColor(score_band_color(score)))
        canvas.setLineWidth(4)
        canvas.circle(MARGIN + 30, paginator.pdf_y(center_y), 28, stroke=1, fill=0)
        paginator.surface.draw_centred_text(
            MARGIN + 30, center_y, f"{score}%", font="Helvetica-Bold", size=16, color=TEXT
        )
        paginator.draw_text(
            score_interpretation(score),
            x=MARGIN + 80,
            top=center_y - 7,
            font="Helvetica-Bold",
            size=13,
            color=SECONDARY,
        )
        paginator.advance(75)

    def _draw_score_breakdown(self) -> None:
        paginator = self.paginator
        score = _int(self.report_data.get("compliance_score"))
        self._heading("Score Breakdown", size=14)
        top = paginator.reserve(100)
        draw_compliance_chart(
            paginator.surface,
            cx=MARGIN + 60,
            cy=top + 45,
            radius=40,
            achieved=score,
            remaining=100 - score,
        )
        self._legend(
            [(score_band_color(score), f"Achieved: {score}%"), (NEUTRAL, f"Remaining: {100 - score}%")],
            x=MARGIN + 150,
            top=top + 25,
        )
        paginator.advance(105)

    def _draw_analytics_table(self) -> None:
        analytics = self.analytics
        self._heading("Assessment Analytics")
        self._key_value_rows(
            [
                ("Total Questions Answered:", str(analytics.total_questions)),
                ("General Questions:", str(analytics.total_general)),
                ("Industry-Specific Questions:", str(analytics.total_industry)),
                ("High Quality Responses:", str(analytics.high_quality)),
                ("Medium Quality Responses:", str(analytics.medium_quality)),
                ("Basic Responses:", str(analytics.basic_response)),
            ],
            value_x=MARGIN + 200,
        )

    def _draw_quality_distribution(self) -> None:
        paginator = self.paginator
        high = self.analytics.high_quality
        medium = self.analytics.medium_quality
        basic = self.analytics.basic_response
        self._heading("Response Quality Distribution", size=16)
        top = paginator.reserve(130)
        draw_quality_chart(
            paginator.surface, cx=MARGIN + 70, cy=top + 60, radius=55, high=high, medium=medium, basic=basic
        )
        self._legend(
            list(
                zip(
                    QUALITY_COLORS,
                    (
                        f"High Quality: {high}",
                        f"Medium Quality: {medium}",
                        f"Basic Response: {basic}",
                    ),
                    strict=True,
                )
            ),
            x=MARGIN + 170,
            top=top + 35,
        )
        paginator.advance(135)

    def _draw_category_distribution(self) -> None:
        paginator = self.paginator
        general = self.analytics.total_general
        industry = self.analytics.total_industry
        if general == 0 and industry == 0:
            return
        self._heading("Question Categories Distribution", size=16)
        top = paginator.reserve(130)
        draw_categories_chart(
            paginator.surface, cx=MARGIN + 70, cy=top + 60, radius=55, general=general, industry_specific=industry
        )
        self._legend(
            list(
                zip(
                    CATEGORY_COLORS,
                    (f"General Questions: {general}", f"Industry-Specific: {industry}"),
                    strict=True,
                )
            ),
            x=MARGIN + 170,
            top=top + 45,
        )
        paginator.advance(135)

    def _draw_paragraph_section(self, title: str, text: Any) -> None:
        self._heading(title)
        self.paginator.write_paragraph(
            str(text or ""),
            x=MARGIN,
            width=CONTENT_WIDTH,
            font="Helvetica",
            size=11,
            color=TEXT,
            leading=15,
            padding=20,
        )

    def _draw_bullet_section(
        self, title: str, items: Sequence[str], *, color: str, placeholder: str
    ) -> None:
        paginator = self.paginator
        self._heading(title)
        if not items:
            paginator.write_paragraph(
                placeholder,
                x=MARGIN,
                width=CONTENT_WIDTH,
                font="Helvetica-Oblique",
                size=11,
                color=MUTED,
                leading=15,
                padding=20,
            )
            return
        for item in items:
            paginator.ensure_space(estimate_text_height(item, chars_per_line=80, line_height=15))
            paginator.canvas.setFillColor(HexColor(color))
            paginator.canvas.circle(MARGIN + 10, paginator.pdf_y(paginator.cursor + 6), 3, stroke=0, fill=1)
            paginator.write_paragraph(
                item,
                x=MARGIN + 25,
                width=CONTENT_WIDTH - 25,
                font="Helvetica",
                size=11,
                color=TEXT,
                leading=15,
                padding=5,
            )
        paginator.advance(15)

    def _numbered_items(self, items: Sequence[str]) -> None:
        paginator = self.paginator
        for index, item in enumerate(items, start=1):
            paginator.ensure_space(estimate_text_height(item, chars_per_line=70, line_height=15, padding=10))
            paginator.write_paragraph(
                f"{index}. {item}",
                x=MARGIN + 10,
                width=CONTENT_WIDTH - 10,
                font="Helvetica",
                size=11,
                color=TEXT,
                leading=15,
                padding=5,
            )

    def _draw_recommendations(self) -> None:
        paginator = self.paginator
        self._heading("AI-Powered Recommendations")

        priority = str(self.suggestions.get("priority_level") or "Medium")
        top = paginator.reserve(22)
        paginator.draw_text("Priority Level:", x=MARGIN, top=top, font="Helvetica-Bold", size=12, color=TEXT)
        paginator.draw_text(
            priority,
            x=MARGIN + 95,
            top=top,
            font="Helvetica-Bold",
            size=12,
            color=PRIORITY_COLORS.get(priority, PRIORITY_COLORS["Medium"]),
        )
        paginator.advance(25)

        self._heading("Improvement Suggestions:", size=14, color=SECONDARY, gap=8)
        improvements = _str_list(self.suggestions.get("improvements"))
        if improvements:
            self._numbered_items(improvements)
        else:
            paginator.write_paragraph(
                NO_IMPROVEMENTS,
                x=MARGIN + 10,
                width=CONTENT_WIDTH - 10,
                font="Helvetica-Oblique",
                size=11,
                color=MUTED,
                leading=15,
            )
        paginator.advance(10)

        best_practices = _str_list(self.suggestions.get("best_practices"))
        if best_practices:
            self._heading("Industry Best Practices:", size=14, color=SECONDARY, gap=8)
            self._numbered_items(best_practices)
            paginator.advance(10)

    def _draw_answer_block(self, title: str, answers: Mapping[str, Any], *, prefix: str) -> None:
        paginator = self.paginator
        if not answers:
            return
        self._heading(title, size=14, color=SECONDARY, gap=8)
        for index, (key, answer) in enumerate(answers.items(), start=1):
            label = f"{prefix}{index}. {format_question_label(key)}:"
            paginator.ensure_space(15 + 12 + 8)
            paginator.write_paragraph(
                label,
                x=MARGIN,
                width=CONTENT_WIDTH,
                font="Helvetica-Bold",
                size=11,
                color=PRIMARY,
                leading=15,
            )
            paginator.write_paragraph(
                answer.display() or "-",
                x=MARGIN + 20,
                width=CONTENT_WIDTH - 20,
                font="Helvetica",
                size=10,
                color=TEXT,
                leading=12,
                padding=8,
            )
        paginator.advance(10)

    def _draw_transcript(self) -> None:
        general = self.general_answers
        industry = self.industry_answers
        if not general and not industry:
            return
        self._heading("Detailed Assessment Responses")
        self._draw_answer_block("General Sustainability Questions:", general, prefix="Q")
        self._draw_answer_block("Industry-Specific Questions:", industry, prefix="IQ")


def render_report(
    *,
    report: Any,
    company: Any,
    assessment: Any,
    generated_at: datetime | None,
    downloaded_at: datetime | None,
    product_name: str,
) -> RenderedReport:
    return ReportDocumentBuilder(
        report=report,
        company=company,
        assessment=assessment,
        generated_at=generated_at,
        downloaded_at=downloaded_at,
        product_name=product_name,
    ).build()


def build_report_pdf(
    *,
    report: Any,
    company: Any,
    assessment: Any,
    generated_at: datetime | None,
    downloaded_at: datetime | None,
    product_name: str,
) -> bytes:
    """Render the report; identical inputs produce identical bytes."""
    return render_report(
        report=report,
        company=company,
        assessment=assessment,
        generated_at=generated_at,
        downloaded_at=downloaded_at,
        product_name=product_name,
    ).pdf_bytes

