"""OpenAI-compatible text-generation transport."""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from apps.api.app.core.errors import ExternalServiceError


class TextGenerator(Protocol):
    """Capability used by the narrative layer; failures raise ExternalServiceError."""

    def generate(self, *, model: str, prompt: str) -> str:
        """Return generated text for the prompt."""


def coerce_content_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts: list[str] = []
        for item in value:
            if isinstance(item, dict):
                text_value = item.get("text")
                if isinstance(text_value, str):
                    parts.append(text_value)
                elif isinstance(text_value, dict) and isinstance(text_value.get("value"), str):
                    parts.append(text_value["value"])
                elif isinstance(item.get("content"), str):
                    parts.append(item["content"])
        return "".join(parts)
    if isinstance(value, dict):
        text_value = value.get("text")
        if isinstance(text_value, str):
            return text_value
        if isinstance(text_value, dict) and isinstance(text_value.get("value"), str):
            return text_value["value"]
        if isinstance(value.get("content"), str):
            return value["content"]
    return ""


def extract_response_text(payload: dict[str, Any]) -> str:
    """Pull generated text out of `/chat/completions` or `/responses` payloads."""
    if isinstance(payload.get("output_text"), str):
        return payload["output_text"]

    choices = payload.get("choices", [])
    if choices:
        message = choices[0].get("message", {})
        return coerce_content_text(message.get("content", ""))

    for item in payload.get("output", []):
        if item.get("type") == "output_text":
            return coerce_content_text(item.get("text", ""))
        if item.get("type") != "message":
            continue
        for content in item.get("content", []):
            if content.get("type") in {"output_text", "text"}:
                return coerce_content_text(content)
    return ""


class OpenAICompatibleTextGenerator:
    """HTTP transport for OpenAI-compatible chat and responses endpoints."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 20.0,
        temperature: float = 0.2,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._temperature = temperature

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _request_chat_completions(self, *, model: str, prompt: str) -> dict[str, Any]:
        response = httpx.post(
            f"{self._base_url}/chat/completions",
            headers=self._headers(),
            json={
                "model": model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self._temperature,
            },
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def _request_responses(self, *, model: str, prompt: str) -> dict[str, Any]:
        response = httpx.post(
            f"{self._base_url}/responses",
            headers=self._headers(),
            json={"model": model, "input": prompt, "temperature": self._temperature},
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def generate(self, *, model: str, prompt: str) -> str:
        errors: dict[str, str] = {}
        for endpoint in ("chat", "responses"):
            try:
                if endpoint == "chat":
                    payload = self._request_chat_completions(model=model, prompt=prompt)
                else:
                    payload = self._request_responses(model=model, prompt=prompt)
            except (httpx.HTTPError, ValueError) as exc:
                errors[endpoint] = f"{type(exc).__name__}: {exc}"
                continue
            text = extract_response_text(payload).strip()
            if text:
                return text
            errors[endpoint] = "empty response text"

        detail = "; ".join(
            [
                f"/chat/completions {errors.get('chat', 'not attempted')}",
                f"/responses {errors.get('responses', 'not attempted')}",
            ]
        )
        raise ExternalServiceError(f"text generation failed for {model}: {detail}")
