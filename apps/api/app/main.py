"""FastAPI application factory and app instance."""

from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from apps.api.app.api.routers.admin import router as admin_router
from apps.api.app.api.routers.assessments import router as assessments_router
from apps.api.app.api.routers.auth import router as auth_router
from apps.api.app.api.routers.reports import router as reports_router
from apps.api.app.api.routers.system import router as system_router
from apps.api.app.core.auth import validate_auth_configuration
from apps.api.app.core.config import get_settings
from apps.api.app.core.errors import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    PersistenceError,
    SustainAssessError,
    ValidationError,
)
from apps.api.app.core.ops import validate_runtime_configuration

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[SustainAssessError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PersistenceError, status.HTTP_409_CONFLICT),
    (ExternalServiceError, status.HTTP_502_BAD_GATEWAY),
)


def status_for_error(exc: SustainAssessError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class RequestOpsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


async def _service_error_handler(request: Request, exc: SustainAssessError) -> JSONResponse:
    status_code = status_for_error(exc)
    if status_code >= 500:
        logger.error("request %s failed: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": {"code": exc.code, "message": exc.message},
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def create_app() -> FastAPI:
    """Create FastAPI app with deterministic configuration wiring."""
    settings = get_settings()
    validate_auth_configuration(
        security_enabled=settings.security_enabled,
        auth_api_keys=settings.auth_api_keys,
        admin_api_keys=settings.admin_api_keys,
    )
    validate_runtime_configuration(settings)
    app = FastAPI(title=settings.app_name, version=settings.app_version)
    allowed_origins = [
        origin.strip()
        for origin in settings.cors_allowed_origins.split(",")
        if origin.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestOpsMiddleware)
    app.add_exception_handler(SustainAssessError, _service_error_handler)
    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(assessments_router)
    app.include_router(reports_router)
    app.include_router(admin_router)
    return app


app = create_app()
