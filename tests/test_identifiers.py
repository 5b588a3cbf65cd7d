import pytest
from sqlalchemy import select

from apps.api.app.core.errors import PersistenceError
from apps.api.app.db.models import Company
from apps.api.app.services import identifiers
from apps.api.app.services.companies import register_company
from apps.api.app.services.identifiers import (
    COMPANY_ID_PREFIX,
    allocate_sequential_id,
    format_sequential_id,
    parse_sequential_number,
)


def _register(db, email: str) -> Company:
    return register_company(
        db,
        company_name=f"Company {email}",
        email=email,
        password="secret-password",
        industry="Retail",
        max_attempts=5,
    )


def test_format_and_parse_sequential_ids() -> None:
    assert format_sequential_id("COMP", 1) == "COMP000001"
    assert format_sequential_id("REP", 1234567) == "REP1234567"
    assert parse_sequential_number("ASS", "ASS000042") == 42
    assert parse_sequential_number("ASS", "REP000042") is None
    assert parse_sequential_number("ASS", "ASSxyz") is None
    assert parse_sequential_number("ASS", None) is None


def test_company_ids_are_sequential(db_session) -> None:
    first = _register(db_session, "one@example.test")
    second = _register(db_session, "two@example.test")

    assert first.company_id == "COMP000001"
    assert second.company_id == "COMP000002"


def test_next_id_orders_numerically_past_width(db_session) -> None:
    db_session.add(
        Company(
            company_id="COMP1000000",
            company_name="Wide",
            email="wide@example.test",
            password_hash="x",
            industry="Retail",
        )
    )
    db_session.add(
        Company(
            company_id="COMP999999",
            company_name="Narrow",
            email="narrow@example.test",
            password_hash="x",
            industry="Retail",
        )
    )
    db_session.commit()

    assert identifiers.next_sequential_id(db_session, Company.company_id, COMPANY_ID_PREFIX) == (
        "COMP1000001"
    )


def test_collision_rolls_back_savepoint_and_retries(monkeypatch, db_session) -> None:
    _register(db_session, "first@example.test")
    original = identifiers.next_sequential_id
    calls: list[str] = []

    def _stale_then_fresh(db, column, prefix, **kwargs):
        candidate = "COMP000001" if not calls else original(db, column, prefix, **kwargs)
        calls.append(candidate)
        return candidate

    monkeypatch.setattr(identifiers, "next_sequential_id", _stale_then_fresh)

    company = _register(db_session, "second@example.test")

    assert calls == ["COMP000001", "COMP000002"]
    assert company.company_id == "COMP000002"
    stored = db_session.scalars(select(Company.company_id).order_by(Company.id)).all()
    assert stored == ["COMP000001", "COMP000002"]


def test_allocation_gives_up_after_max_attempts(monkeypatch, db_session) -> None:
    _register(db_session, "first@example.test")
    calls: list[str] = []

    def _always_taken(db, column, prefix, **kwargs):
        calls.append("COMP000001")
        return "COMP000001"

    monkeypatch.setattr(identifiers, "next_sequential_id", _always_taken)
    company = Company(
        company_name="Blocked",
        email="blocked@example.test",
        password_hash="x",
        industry="Retail",
    )

    with pytest.raises(PersistenceError, match="after 3 attempts"):
        allocate_sequential_id(
            db_session,
            company,
            column=Company.company_id,
            prefix=COMPANY_ID_PREFIX,
            max_attempts=3,
        )
    assert len(calls) == 3


def test_unrelated_integrity_error_is_not_retried(monkeypatch, db_session) -> None:
    _register(db_session, "taken@example.test")
    calls: list[str] = []
    original = identifiers.next_sequential_id

    def _counting(db, column, prefix, **kwargs):
        candidate = original(db, column, prefix, **kwargs)
        calls.append(candidate)
        return candidate

    monkeypatch.setattr(identifiers, "next_sequential_id", _counting)
    duplicate_email = Company(
        company_name="Duplicate",
        email="taken@example.test",
        password_hash="x",
        industry="Retail",
    )

    with pytest.raises(PersistenceError, match="could not persist Company"):
        allocate_sequential_id(
            db_session,
            duplicate_email,
            column=Company.company_id,
            prefix=COMPANY_ID_PREFIX,
            max_attempts=5,
        )
    assert calls == ["COMP000002"]
