from pathlib import Path

from fastapi.testclient import TestClient

from apps.api.app.core.config import get_settings
from apps.api.main import app

AUTH = {"X-API-Key": "dev-key"}


def _company_headers(client: TestClient, industry: str = "IT/Technology") -> dict[str, str]:
    response = client.post(
        "/auth/register",
        json={
            "company_name": "Byte Works",
            "email": "team@byte.test",
            "password": "secret-password",
            "industry": industry,
        },
        headers=AUTH,
    )
    return {**AUTH, "X-Company-ID": response.json()["company_id"]}


def test_start_assessment_returns_industry_questions_and_is_idempotent(database_url: str) -> None:
    client = TestClient(app)
    headers = _company_headers(client)

    first = client.get("/assessment", headers=headers)
    second = client.get("/assessment", headers=headers)

    assert first.status_code == 200
    payload = first.json()
    assert payload["created"] is True
    assert payload["assessment"]["assessment_id"] == "ASS000001"
    assert payload["assessment"]["status"] == "in-progress"
    assert [question["id"] for question in payload["industry_questions"]] == [
        "server_efficiency",
        "remote_work",
        "ewaste_program",
    ]
    assert payload["general_questions"][0]["id"] == "company_size"
    assert second.json()["created"] is False
    assert second.json()["assessment"]["assessment_id"] == "ASS000001"


def test_save_then_submit_lifecycle(database_url: str) -> None:
    client = TestClient(app)
    headers = _company_headers(client)
    client.get("/assessment", headers=headers)

    saved = client.post(
        "/assessment/save",
        json={
            "general_answers": {
                "sustainability_policy": "Yes",
                "certifications": ["ISO 14001", "None"],
            },
            "industry_answers": {"remote_work": "41-60%"},
        },
        headers=headers,
    )
    submitted = client.post("/assessment/submit", headers=headers)
    again = client.post("/assessment/submit", headers=headers)

    assert saved.status_code == 200
    assert saved.json()["status"] == "completed"
    assert saved.json()["general_answers"]["certifications"] == ["ISO 14001", "None"]
    assert submitted.json()["status"] == "submitted"
    assert submitted.json()["submission_date"] is not None
    assert again.status_code == 404
    assert again.json()["detail"]["code"] == "no_completed_assessment"


def test_save_without_active_assessment_is_not_found(database_url: str) -> None:
    client = TestClient(app)
    headers = _company_headers(client)

    response = client.post("/assessment/save", json={}, headers=headers)

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "no_active_assessment"


def test_new_assessment_starts_after_submission(database_url: str) -> None:
    client = TestClient(app)
    headers = _company_headers(client)
    client.get("/assessment", headers=headers)
    client.post("/assessment/save", json={"submit": True}, headers=headers)

    restarted = client.get("/assessment", headers=headers)

    assert restarted.json()["created"] is True
    assert restarted.json()["assessment"]["assessment_id"] == "ASS000002"


def test_upload_is_attached_to_question(database_url: str, tmp_path: Path) -> None:
    client = TestClient(app)
    headers = _company_headers(client)
    client.get("/assessment", headers=headers)

    response = client.post(
        "/assessment/uploads/sustainability_policy",
        files={"file": ("policy.pdf", b"%PDF-1.4 policy", "application/pdf")},
        headers=headers,
    )

    assert response.status_code == 200
    metadata = response.json()["uploaded_documents"]["sustainability_policy"]
    assert metadata["original_name"] == "policy.pdf"
    assert metadata["size"] == len(b"%PDF-1.4 policy")
    assert Path(metadata["path"]).parent == tmp_path / "uploads"
    assert Path(metadata["path"]).read_bytes() == b"%PDF-1.4 policy"


def test_upload_rejects_disallowed_type(database_url: str) -> None:
    client = TestClient(app)
    headers = _company_headers(client)
    client.get("/assessment", headers=headers)

    response = client.post(
        "/assessment/uploads/sustainability_policy",
        files={"file": ("run.exe", b"MZ", "application/octet-stream")},
        headers=headers,
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "unsupported_upload_type"


def test_upload_requires_file_and_active_assessment(database_url: str) -> None:
    client = TestClient(app)
    headers = _company_headers(client)

    without_assessment = client.post(
        "/assessment/uploads/sustainability_policy",
        files={"file": ("notes.txt", b"notes", "text/plain")},
        headers=headers,
    )
    client.get("/assessment", headers=headers)
    without_file = client.post("/assessment/uploads/sustainability_policy", headers=headers)

    assert without_assessment.status_code == 404
    assert without_file.status_code == 422


def test_upload_over_size_cap_is_rejected(database_url: str, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SUSTAINASSESS_UPLOAD_MAX_BYTES", "16")
    get_settings.cache_clear()
    client = TestClient(app)
    headers = _company_headers(client)
    client.get("/assessment", headers=headers)

    oversized = client.post(
        "/assessment/uploads/sustainability_policy",
        files={"file": ("notes.txt", b"x" * 4096, "text/plain")},
        headers=headers,
    )
    at_cap = client.post(
        "/assessment/uploads/sustainability_policy",
        files={"file": ("notes.txt", b"x" * 16, "text/plain")},
        headers=headers,
    )

    assert oversized.status_code == 422
    assert oversized.json()["detail"]["code"] == "upload_too_large"
    assert at_cap.status_code == 200
    assert at_cap.json()["uploaded_documents"]["sustainability_policy"]["size"] == 16
