"""Runtime text-generation provider wiring."""

from __future__ import annotations

import logging

from apps.api.app.core.config import Settings
from apps.api.app.services.narrative import NarrativeComposer
from apps.api.app.services.text_generation import OpenAICompatibleTextGenerator, TextGenerator

logger = logging.getLogger(__name__)


def build_text_generator_from_settings(settings: Settings) -> TextGenerator | None:
    """Return a generator, or None when text generation is disabled or unconfigured."""
    if not settings.llm_enabled:
        return None
    if not settings.llm_api_key:
        logger.warning("llm enabled without api key; narrative will use local fallback")
        return None
    return OpenAICompatibleTextGenerator(
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        timeout_seconds=settings.llm_timeout_seconds,
    )


def build_narrative_composer(settings: Settings) -> NarrativeComposer:
    models = [settings.llm_model, *settings.fallback_model_list] if settings.llm_model else []
    return NarrativeComposer(
        generator=build_text_generator_from_settings(settings),
        models=models,
    )
