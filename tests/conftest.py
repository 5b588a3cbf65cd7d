from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from alembic import command
from alembic.config import Config

# Tests run against Alembic-migrated SQLite files with text generation disabled.
os.environ.setdefault("SUSTAINASSESS_RUNTIME_ENVIRONMENT", "test")
os.environ.setdefault("SUSTAINASSESS_LLM_ENABLED", "false")
os.environ.setdefault("SUSTAINASSESS_SECURITY_ENABLED", "true")
os.environ.setdefault("SUSTAINASSESS_AUTH_API_KEYS", "dev-key")
os.environ.setdefault("SUSTAINASSESS_ADMIN_API_KEYS", "admin-key")


def migrate(db_url: str) -> None:
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(config, "head")


@pytest.fixture
def database_url(monkeypatch, tmp_path: Path) -> Iterator[str]:
    from apps.api.app.core.config import get_settings

    db_url = f"sqlite:///{tmp_path / 'sustainassess.sqlite'}"
    migrate(db_url)
    monkeypatch.setenv("SUSTAINASSESS_DATABASE_URL", db_url)
    monkeypatch.setenv("SUSTAINASSESS_UPLOAD_STORAGE_ROOT", str(tmp_path / "uploads"))
    get_settings.cache_clear()
    yield db_url
    get_settings.cache_clear()


@pytest.fixture
def db_session(database_url: str) -> Iterator[Session]:
    from apps.api.app.db.session import get_session_factory

    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()
