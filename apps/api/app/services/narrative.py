"""Executive summary and improvement suggestions with deterministic fallback."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaValidationError

from apps.api.app.core.errors import ExternalServiceError
from apps.api.app.services.audit import log_structured_event
from apps.api.app.services.text_generation import TextGenerator

logger = logging.getLogger(__name__)

PriorityLevel = Literal["Low", "Medium", "High", "Critical"]
ProvenanceSource = Literal["ai", "fallback"]

MAX_ITEMS_PER_CATEGORY = 5
MIN_ITEM_LENGTH = 10

_LIST_MARKER = re.compile(r"^(\d+\.|-|•)\s*")
_PRIORITY_KEYWORDS: tuple[tuple[PriorityLevel, tuple[str, ...]], ...] = (
    ("Critical", ("critical", "urgent", "immediate", "severe")),
    ("High", ("high", "important", "significant")),
    ("Low", ("low", "minor", "minimal")),
)
_SECTION_KEYWORDS = {
    "improvements": "improvement",
    "best_practices": "practice",
    "action_items": "action",
}


@dataclass(frozen=True)
class Provenance:
    source: ProvenanceSource
    timestamp: datetime
    model: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class NarrativeResult:
    text: str
    provenance: Provenance


class Suggestions(BaseModel):
    """Structured suggestions; accepts camelCase keys from generated JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    improvements: list[str] = Field(default_factory=list)
    best_practices: list[str] = Field(default_factory=list, alias="bestPractices")
    action_items: list[str] = Field(default_factory=list, alias="actionItems")
    priority_level: PriorityLevel = Field(default="Medium", alias="priorityLevel")

    @field_validator("priority_level", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


@dataclass(frozen=True)
class SuggestionsResult:
    suggestions: Suggestions
    provenance: Provenance
    raw_preview: str | None = None


@dataclass(frozen=True)
class NarrativeContext:
    company_name: str
    industry: str
    general_answers: Mapping[str, Any] = field(default_factory=dict)
    industry_answers: Mapping[str, Any] = field(default_factory=dict)


_INDUSTRY_FALLBACK_SUGGESTIONS: dict[str, dict[str, list[str]]] = {
    "Manufacturing": {
        "improvements": [
            "Implement lean manufacturing principles to reduce waste",
            "Upgrade to energy-efficient machinery and equipment",
            "Establish a comprehensive recycling program for production waste",
            "Implement water conservation and treatment systems",
            "Develop supplier sustainability requirements and auditing",
        ],
        "best_practices": [
            "ISO 14001 Environmental Management System certification",
            "Regular environmental impact assessments",
            "Employee training on sustainability practices",
            "Circular economy principles in product design",
        ],
        "action_items": [
            "Conduct energy audit within next quarter",
            "Set measurable waste reduction targets",
            "Implement monthly sustainability metrics reporting",
            "Train management team on sustainability leadership",
        ],
    },
    "IT/Technology": {
        "improvements": [
            "Migrate to cloud infrastructure for better energy efficiency",
            "Implement comprehensive e-waste recycling programs",
            "Optimize data center cooling and power usage",
            "Promote remote work to reduce carbon footprint",
            "Use renewable energy sources for operations",
        ],
        "best_practices": [
            "Green software development practices",
            "ENERGY STAR certified equipment procurement",
            "Carbon footprint measurement and reporting",
            "Sustainable IT disposal and refurbishment programs",
        ],
        "action_items": [
            "Audit current IT infrastructure energy consumption",
            "Develop remote work sustainability policy",
            "Partner with certified e-waste recycling vendors",
            "Implement power management settings on all devices",
        ],
    },
}

_DEFAULT_FALLBACK_SUGGESTIONS: dict[str, list[str]] = {
    "improvements": [
        "Develop and implement a formal sustainability policy",
        "Establish measurable environmental targets and KPIs",
        "Implement energy-efficient technologies and practices",
        "Create employee awareness and training programs",
        "Establish partnerships with sustainable suppliers",
    ],
    "best_practices": [
        "Regular sustainability reporting and transparency",
        "Stakeholder engagement on environmental issues",
        "Continuous improvement and innovation in sustainability",
        "Industry collaboration on sustainability initiatives",
    ],
    "action_items": [
        "Conduct baseline sustainability assessment",
        "Set short-term and long-term sustainability goals",
        "Assign sustainability champions across departments",
        "Implement monthly sustainability progress reviews",
    ],
}


def score_band_phrase(score: int) -> str:
    if score >= 80:
        return "excellent performance with strong sustainability practices"
    if score >= 60:
        return "good performance with opportunities for enhancement"
    if score >= 40:
        return "moderate performance requiring focused improvements"
    return "concerning performance requiring immediate strategic intervention"


def fallback_summary(*, company_name: str, industry: str, score: int) -> str:
    return (
        f"Assessment completed for {company_name} in the {industry} industry, achieving a "
        f"compliance score of {score}%, indicating {score_band_phrase(score)}. "
        "The evaluation reveals key insights into the organization's environmental, social, "
        "and governance practices through comprehensive analysis of sustainability metrics. "
        f"Industry-specific considerations for {industry} operations have been thoroughly "
        "examined, highlighting both current strengths and areas requiring strategic attention. "
        "The assessment identifies critical pathways for improvement while recognizing existing "
        "sustainability initiatives that demonstrate organizational commitment. "
        "Risk factors and compliance gaps have been evaluated against industry standards and "
        "best practices. Strategic recommendations focus on actionable steps to enhance "
        "sustainability performance and achieve long-term environmental and social "
        "responsibility goals."
    )


def fallback_suggestions(industry: str) -> Suggestions:
    selected = _INDUSTRY_FALLBACK_SUGGESTIONS.get(industry, _DEFAULT_FALLBACK_SUGGESTIONS)
    return Suggestions(
        improvements=list(selected["improvements"]),
        best_practices=list(selected["best_practices"]),
        action_items=list(selected["action_items"]),
        priority_level="Medium",
    )


def _answers_json(answers: Mapping[str, Any]) -> str:
    return json.dumps(dict(answers), indent=2, ensure_ascii=False)


def build_summary_prompt(context: NarrativeContext, *, score: int) -> str:
    return (
        "As a sustainability expert, create a comprehensive executive summary for the "
        "following assessment:\n\n"
        f"Company: {context.company_name}\n"
        f"Industry: {context.industry}\n"
        f"Compliance Score: {score}%\n\n"
        "Assessment Responses:\n"
        f"General: {_answers_json(context.general_answers)}\n"
        f"Industry-Specific: {_answers_json(context.industry_answers)}\n\n"
        "Generate a detailed executive summary of 6-7 lines that covers:\n"
        "- Overall assessment performance and score context\n"
        "- Key sustainability strengths identified\n"
        "- Major areas requiring attention\n"
        "- Industry-specific observations\n"
        "- Risk assessment implications\n"
        "- Strategic recommendations overview\n\n"
        "Write in a professional, analytical tone suitable for executive reporting. "
        "Provide only the summary text, no JSON formatting or additional structure."
    )


def build_suggestions_prompt(context: NarrativeContext) -> str:
    return (
        "As a sustainability expert, analyze the following company assessment and provide "
        "actionable recommendations:\n\n"
        f"Company: {context.company_name}\n"
        f"Industry: {context.industry}\n\n"
        f"General Answers:\n{_answers_json(context.general_answers)}\n\n"
        f"Industry-Specific Answers:\n{_answers_json(context.industry_answers)}\n\n"
        "Please provide:\n"
        "1. Top 5 improvement suggestions\n"
        f"2. Industry best practices specific to {context.industry}\n"
        "3. Priority action items\n"
        "4. Risk assessment (Low/Medium/High/Critical)\n\n"
        "Format your response as JSON with the following structure:\n"
        '{"improvements": ["..."], "bestPractices": ["..."], '
        '"actionItems": ["..."], "priorityLevel": "Medium"}'
    )


def _json_object_from_text(text: str) -> dict[str, Any]:
    text = text.strip()
    if not text:
        raise ValueError("empty text payload")
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    fenced_match = re.search(r"```(?:json)?\s*(\{.*\})\s*```", text, flags=re.DOTALL)
    if fenced_match:
        parsed = json.loads(fenced_match.group(1))
        if isinstance(parsed, dict):
            return parsed

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and first < last:
        parsed = json.loads(text[first : last + 1])
        if isinstance(parsed, dict):
            return parsed

    raise ValueError("text payload does not contain a JSON object")


def extract_list_items(lines: Sequence[str]) -> list[str]:
    """Numbered or bulleted lines longer than the minimum, at most five."""
    items: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not _LIST_MARKER.match(stripped):
            continue
        cleaned = _LIST_MARKER.sub("", stripped, count=1).strip()
        if len(cleaned) > MIN_ITEM_LENGTH:
            items.append(cleaned)
    return items[:MAX_ITEMS_PER_CATEGORY]


def _split_sections(text: str) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {}
    current: str | None = None
    for line in text.splitlines():
        stripped = line.strip()
        if stripped and not _LIST_MARKER.match(stripped):
            heading = stripped.lower()
            for category, keyword in _SECTION_KEYWORDS.items():
                if keyword in heading:
                    current = category
                    break
        if current is not None:
            sections.setdefault(current, []).append(line)
    return sections


def extract_priority_level(text: str) -> PriorityLevel:
    lowered = text.lower()
    for level, keywords in _PRIORITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return level
    return "Medium"


def parse_suggestions_text(text: str) -> Suggestions:
    """Structured JSON first; otherwise list-line heuristics and keyword priority."""
    try:
        return Suggestions.model_validate(_json_object_from_text(text))
    except (ValueError, SchemaValidationError):
        pass

    sections = _split_sections(text)
    all_lines = text.splitlines()

    def _items(category: str) -> list[str]:
        section_items = extract_list_items(sections.get(category, []))
        return section_items or extract_list_items(all_lines)

    return Suggestions(
        improvements=_items("improvements"),
        best_practices=_items("best_practices"),
        action_items=_items("action_items"),
        priority_level=extract_priority_level(text),
    )


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _unique(models: Sequence[str]) -> list[str]:
    seen: list[str] = []
    for model in models:
        if model and model not in seen:
            seen.append(model)
    return seen


class NarrativeComposer:
    """Tries each configured model in order; any failure ends in the local fallback."""

    def __init__(
        self,
        *,
        generator: TextGenerator | None,
        models: Sequence[str] = (),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._generator = generator
        self._models = _unique(models)
        self._clock = clock

    @property
    def models(self) -> list[str]:
        return list(self._models)

    @property
    def generation_configured(self) -> bool:
        return self._generator is not None and bool(self._models)

    def _generate(self, prompt: str) -> tuple[str, str]:
        if not self.generation_configured or self._generator is None:
            raise ExternalServiceError("text generation is not configured")

        failures: list[str] = []
        for model in self._models:
            try:
                text = self._generator.generate(model=model, prompt=prompt).strip()
            except Exception as exc:
                logger.warning("text generation with %s failed: %s", model, exc)
                failures.append(f"{model}: {exc}")
                continue
            if text:
                return text, model
            failures.append(f"{model}: empty response")
        raise ExternalServiceError("all text generation models failed: " + "; ".join(failures))

    def _fallback_provenance(self, error: str) -> Provenance:
        return Provenance(source="fallback", timestamp=self._clock(), error=error)

    def compose_summary(self, context: NarrativeContext, *, score: int) -> NarrativeResult:
        try:
            text, model = self._generate(build_summary_prompt(context, score=score))
        except ExternalServiceError as exc:
            log_structured_event(
                "narrative.summary_fallback",
                company_name=context.company_name,
                industry=context.industry,
                error=exc.message,
            )
            return NarrativeResult(
                text=fallback_summary(
                    company_name=context.company_name,
                    industry=context.industry,
                    score=score,
                ),
                provenance=self._fallback_provenance(exc.message),
            )
        return NarrativeResult(
            text=text,
            provenance=Provenance(source="ai", timestamp=self._clock(), model=model),
        )

    def compose_suggestions(self, context: NarrativeContext) -> SuggestionsResult:
        try:
            text, model = self._generate(build_suggestions_prompt(context))
        except ExternalServiceError as exc:
            log_structured_event(
                "narrative.suggestions_fallback",
                company_name=context.company_name,
                industry=context.industry,
                error=exc.message,
            )
            return SuggestionsResult(
                suggestions=fallback_suggestions(context.industry),
                provenance=self._fallback_provenance(exc.message),
            )
        return SuggestionsResult(
            suggestions=parse_suggestions_text(text),
            provenance=Provenance(source="ai", timestamp=self._clock(), model=model),
            raw_preview=text[:200],
        )
