"""Operational safety helpers for request handling and config validation."""

from __future__ import annotations

from typing import Any

from apps.api.app.core.config import Settings

_REDACTED = "***REDACTED***"
_SENSITIVE_KEYS = {
    "api_key",
    "authorization",
    "token",
    "secret",
    "password",
    "password_hash",
    "llm_api_key",
}


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    normalized = key_lower.replace("-", "_")
    return (
        normalized in _SENSITIVE_KEYS
        or normalized.endswith("_key")
        or normalized.endswith("apikey")
        or "authorization" in normalized
        or "password" in normalized
    )


def redact_sensitive_fields(value: Any) -> Any:
    if isinstance(value, dict):
        redacted: dict[str, Any] = {}
        for key, nested in value.items():
            if _is_sensitive_key(key):
                redacted[key] = _REDACTED
            else:
                redacted[key] = redact_sensitive_fields(nested)
        return redacted
    if isinstance(value, list):
        return [redact_sensitive_fields(item) for item in value]
    return value


def validate_runtime_configuration(settings: Settings) -> None:
    if not settings.llm_base_url.startswith(("http://", "https://")):
        raise ValueError("Invalid runtime configuration: llm base url must be http(s)")
    if settings.llm_timeout_seconds <= 0:
        raise ValueError("Invalid runtime configuration: llm timeout must be > 0")
    if settings.upload_max_bytes <= 0:
        raise ValueError("Invalid runtime configuration: upload size cap must be > 0")
    if not settings.allowed_extension_set:
        raise ValueError("Invalid runtime configuration: upload extension allowlist is empty")
    if settings.id_allocation_max_attempts <= 0:
        raise ValueError("Invalid runtime configuration: id allocation attempts must be > 0")
    if settings.llm_enabled:
        if not settings.llm_model:
            raise ValueError("Invalid runtime configuration: llm_model is required when enabled")
        if not settings.llm_api_key:
            raise ValueError(
                "Invalid runtime configuration: llm_api_key is required when enabled"
            )
