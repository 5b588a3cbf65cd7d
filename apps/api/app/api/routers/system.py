"""System endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from apps.api.app.core.config import get_settings
from apps.api.app.services.llm_provider import build_narrative_composer

router = APIRouter()


class NarrativeStatusResponse(BaseModel):
    enabled: bool
    base_url: str
    models: list[str]
    mode: str


@router.get("/healthz")
def healthz() -> dict[str, str]:
    """Liveness endpoint."""
    return {"status": "ok"}


@router.get("/version")
def version() -> dict[str, str]:
    """Return application version from settings."""
    settings = get_settings()
    return {"version": settings.app_version}


@router.get("/narrative-status", response_model=NarrativeStatusResponse)
def narrative_status() -> NarrativeStatusResponse:
    """Report which text-generation models would be tried, without calling them."""
    settings = get_settings()
    composer = build_narrative_composer(settings)
    return NarrativeStatusResponse(
        enabled=composer.generation_configured,
        base_url=settings.llm_base_url,
        models=composer.models,
        mode="ai_with_fallback" if composer.generation_configured else "fallback_only",
    )
