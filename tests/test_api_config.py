from fastapi.testclient import TestClient

from apps.api.app.core.config import get_settings
from apps.api.main import app


def test_settings_load_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SUSTAINASSESS_APP_VERSION", "9.9.9")
    monkeypatch.setenv("SUSTAINASSESS_LLM_FALLBACK_MODELS", "alt-one, ,alt-two")
    monkeypatch.setenv("SUSTAINASSESS_UPLOAD_ALLOWED_EXTENSIONS", "PDF, .txt")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.app_version == "9.9.9"
    assert settings.fallback_model_list == ["alt-one", "alt-two"]
    assert settings.allowed_extension_set == {"pdf", "txt"}
    get_settings.cache_clear()


def test_version_endpoint_uses_settings(monkeypatch) -> None:
    monkeypatch.setenv("SUSTAINASSESS_APP_VERSION", "2.1.0")
    get_settings.cache_clear()
    client = TestClient(app)

    response = client.get("/version")

    assert response.status_code == 200
    assert response.json() == {"version": "2.1.0"}
    get_settings.cache_clear()


def test_healthz_echoes_request_id() -> None:
    client = TestClient(app)

    response = client.get("/healthz", headers={"X-Request-ID": "req-123"})

    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "req-123"


def test_narrative_status_reports_fallback_only_when_disabled(monkeypatch) -> None:
    monkeypatch.setenv("SUSTAINASSESS_LLM_ENABLED", "false")
    get_settings.cache_clear()
    client = TestClient(app)

    payload = client.get("/narrative-status").json()

    assert payload["enabled"] is False
    assert payload["mode"] == "fallback_only"
    assert payload["models"][0] == "gemini-1.5-flash"
    get_settings.cache_clear()
