"""ASGI entrypoint: `uvicorn apps.api.main:app`."""

from apps.api.app.main import app, create_app

__all__ = ["app", "create_app"]
