from datetime import UTC, datetime

import httpx
import pytest

from apps.api.app.core.config import Settings
from apps.api.app.core.errors import ExternalServiceError
from apps.api.app.services.llm_provider import (
    build_narrative_composer,
    build_text_generator_from_settings,
)
from apps.api.app.services.narrative import (
    NarrativeComposer,
    NarrativeContext,
    extract_list_items,
    extract_priority_level,
    fallback_summary,
    parse_suggestions_text,
)
from apps.api.app.services.text_generation import (
    OpenAICompatibleTextGenerator,
    extract_response_text,
)

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
CONTEXT = NarrativeContext(
    company_name="Acme Plastics",
    industry="Manufacturing",
    general_answers={"sustainability_policy": "Yes"},
    industry_answers={"production_waste": "12%"},
)


class _FailingGenerator:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def generate(self, *, model: str, prompt: str) -> str:
        self.calls.append(model)
        raise ExternalServiceError(f"{model} unavailable")


class _ScriptedGenerator:
    def __init__(self, responses: dict[str, str]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    def generate(self, *, model: str, prompt: str) -> str:
        self.calls.append(model)
        if model not in self.responses:
            raise ExternalServiceError(f"{model} unavailable")
        return self.responses[model]


def test_fallback_summary_is_deterministic_and_mentions_inputs() -> None:
    first = fallback_summary(company_name="Acme Plastics", industry="Manufacturing", score=42)
    second = fallback_summary(company_name="Acme Plastics", industry="Manufacturing", score=42)

    assert first == second
    assert "Acme Plastics" in first
    assert "Manufacturing" in first
    assert "42%" in first


def test_summary_falls_back_with_error_provenance_when_all_models_fail() -> None:
    generator = _FailingGenerator()
    composer = NarrativeComposer(
        generator=generator,
        models=["primary", "secondary"],
        clock=lambda: FIXED_NOW,
    )

    result = composer.compose_summary(CONTEXT, score=42)

    assert generator.calls == ["primary", "secondary"]
    assert result.text == fallback_summary(
        company_name="Acme Plastics", industry="Manufacturing", score=42
    )
    assert result.provenance.source == "fallback"
    assert result.provenance.timestamp == FIXED_NOW
    assert result.provenance.model is None
    assert "primary unavailable" in result.provenance.error
    assert "secondary unavailable" in result.provenance.error


def test_unconfigured_composer_uses_fallback_without_calls() -> None:
    composer = NarrativeComposer(generator=None, models=["primary"])

    summary = composer.compose_summary(CONTEXT, score=10)
    suggestions = composer.compose_suggestions(CONTEXT)

    assert summary.provenance.source == "fallback"
    assert summary.provenance.error == "text generation is not configured"
    assert suggestions.provenance.source == "fallback"
    assert suggestions.suggestions.priority_level == "Medium"
    assert suggestions.suggestions.improvements[0].startswith("Implement lean manufacturing")


def test_composer_uses_first_model_that_answers() -> None:
    generator = _ScriptedGenerator({"secondary": "A concise executive summary."})
    composer = NarrativeComposer(
        generator=generator,
        models=["primary", "secondary", "tertiary"],
        clock=lambda: FIXED_NOW,
    )

    result = composer.compose_summary(CONTEXT, score=75)

    assert generator.calls == ["primary", "secondary"]
    assert result.text == "A concise executive summary."
    assert result.provenance.source == "ai"
    assert result.provenance.model == "secondary"
    assert result.provenance.error is None


def test_suggestions_parse_structured_json_with_camel_case_keys() -> None:
    payload = (
        "```json\n"
        '{"improvements": ["Install rooftop solar panels"], '
        '"bestPractices": ["Publish an annual ESG report"], '
        '"actionItems": ["Run an energy audit"], "priorityLevel": "high"}\n'
        "```"
    )
    generator = _ScriptedGenerator({"primary": payload})
    composer = NarrativeComposer(generator=generator, models=["primary"])

    result = composer.compose_suggestions(CONTEXT)

    assert result.provenance.source == "ai"
    assert result.suggestions.improvements == ["Install rooftop solar panels"]
    assert result.suggestions.best_practices == ["Publish an annual ESG report"]
    assert result.suggestions.action_items == ["Run an energy audit"]
    assert result.suggestions.priority_level == "High"
    assert result.raw_preview is not None


def test_suggestions_parse_free_text_sections() -> None:
    text = "\n".join(
        [
            "Improvement suggestions:",
            "1. Switch the plant to renewable electricity",
            "2. Short",
            "Best practices:",
            "- Adopt ISO 14001 environmental management",
            "Action items:",
            "• Schedule a quarterly waste audit",
            "Overall risk is critical for this operation.",
        ]
    )

    suggestions = parse_suggestions_text(text)

    assert suggestions.improvements == ["Switch the plant to renewable electricity"]
    assert suggestions.best_practices == ["Adopt ISO 14001 environmental management"]
    assert suggestions.action_items == ["Schedule a quarterly waste audit"]
    assert suggestions.priority_level == "Critical"


def test_extract_list_items_caps_at_five_and_skips_short_lines() -> None:
    lines = [f"{index}. Recommendation number {index}" for index in range(1, 8)]
    lines.append("- tiny")

    items = extract_list_items(lines)

    assert len(items) == 5
    assert items[0] == "Recommendation number 1"


def test_extract_priority_level_defaults_to_medium() -> None:
    assert extract_priority_level("nothing notable here") == "Medium"
    assert extract_priority_level("Minor issues only") == "Low"


def test_generator_falls_back_to_responses_endpoint(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/chat/completions"):
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json={"output_text": "Generated summary"})

    client = httpx.Client(transport=httpx.MockTransport(handler))

    def _post(url: str, **kwargs) -> httpx.Response:
        return client.post(url, **kwargs)

    monkeypatch.setattr(httpx, "post", _post)
    generator = OpenAICompatibleTextGenerator(base_url="http://llm.local/v1", api_key="k")

    assert generator.generate(model="m", prompt="p") == "Generated summary"


def test_generator_raises_external_service_error_when_both_endpoints_fail(monkeypatch) -> None:
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(500, json={}))
    )
    monkeypatch.setattr(httpx, "post", lambda url, **kwargs: client.post(url, **kwargs))
    generator = OpenAICompatibleTextGenerator(base_url="http://llm.local/v1", api_key="k")

    with pytest.raises(ExternalServiceError, match="text generation failed for m"):
        generator.generate(model="m", prompt="p")


def test_extract_response_text_reads_chat_payload() -> None:
    payload = {"choices": [{"message": {"content": [{"type": "text", "text": "hi"}]}}]}
    assert extract_response_text(payload) == "hi"


def test_provider_returns_no_generator_when_disabled_or_keyless() -> None:
    assert build_text_generator_from_settings(Settings(llm_enabled=False)) is None
    assert build_text_generator_from_settings(Settings(llm_enabled=True, llm_api_key="")) is None


def test_provider_orders_primary_then_fallback_models() -> None:
    settings = Settings(
        llm_enabled=True,
        llm_api_key="secret",
        llm_model="primary-model",
        llm_fallback_models="alt-one, alt-two,primary-model",
    )

    composer = build_narrative_composer(settings)

    assert composer.models == ["primary-model", "alt-one", "alt-two"]
    assert composer.generation_configured
