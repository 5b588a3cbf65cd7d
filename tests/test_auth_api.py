from fastapi.testclient import TestClient

from apps.api.main import app

AUTH = {"X-API-Key": "dev-key"}


def _register(client: TestClient, **overrides):
    payload = {
        "company_name": "Acme Plastics",
        "email": "Ops@Acme.test",
        "password": "secret-password",
        "industry": "Manufacturing",
    }
    payload.update(overrides)
    return client.post("/auth/register", json=payload, headers=AUTH)


def test_register_then_login(database_url: str) -> None:
    client = TestClient(app)

    registered = _register(client)
    login = client.post(
        "/auth/login",
        json={"email": "ops@acme.test", "password": "secret-password"},
        headers=AUTH,
    )

    assert registered.status_code == 201
    profile = registered.json()
    assert profile["company_id"] == "COMP000001"
    assert profile["email"] == "ops@acme.test"
    assert "password_hash" not in profile
    assert login.status_code == 200
    assert login.json()["company_id"] == "COMP000001"


def test_second_company_gets_next_identifier(database_url: str) -> None:
    client = TestClient(app)

    _register(client)
    second = _register(client, email="hello@bolt.test", company_name="Bolt Logistics")

    assert second.json()["company_id"] == "COMP000002"


def test_register_rejects_duplicate_email(database_url: str) -> None:
    client = TestClient(app)
    _register(client)

    duplicate = _register(client, email="OPS@acme.test")

    assert duplicate.status_code == 422
    assert duplicate.json()["detail"]["code"] == "email_taken"


def test_register_rejects_weak_password_and_unknown_industry(database_url: str) -> None:
    client = TestClient(app)

    weak = _register(client, password="12345")
    unknown = _register(client, industry="Space Mining")

    assert weak.json()["detail"]["code"] == "weak_password"
    assert unknown.json()["detail"]["code"] == "unknown_industry"


def test_register_rejects_malformed_email(database_url: str) -> None:
    client = TestClient(app)

    response = _register(client, email="not-an-email")

    assert response.status_code == 422


def test_login_with_wrong_password_is_unauthorized(database_url: str) -> None:
    client = TestClient(app)
    _register(client)

    response = client.post(
        "/auth/login",
        json={"email": "ops@acme.test", "password": "wrong-password"},
        headers={**AUTH, "X-Request-ID": "login-1"},
    )

    assert response.status_code == 401
    assert response.json() == {
        "detail": {"code": "invalid_credentials", "message": "invalid email or password"},
        "request_id": "login-1",
    }


def test_api_key_is_required(database_url: str) -> None:
    client = TestClient(app)

    missing = client.get("/auth/industries")
    invalid = client.get("/auth/industries", headers={"X-API-Key": "nope"})
    valid = client.get("/auth/industries", headers=AUTH)

    assert missing.status_code == 401
    assert invalid.status_code == 403
    assert valid.status_code == 200
    assert "IT/Technology" in valid.json()["industries"]


def test_company_header_is_required_and_must_exist(database_url: str) -> None:
    client = TestClient(app)

    missing = client.get("/assessment", headers=AUTH)
    unknown = client.get("/assessment", headers={**AUTH, "X-Company-ID": "COMP999999"})

    assert missing.status_code == 401
    assert unknown.status_code == 403
