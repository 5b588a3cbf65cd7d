"""Typed service-layer errors."""

from __future__ import annotations


class SustainAssessError(RuntimeError):
    """Base error for service-layer failures."""

    code = "error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(SustainAssessError):
    """Raised when caller input has an unsupported shape or value."""

    code = "validation_error"


class NotFoundError(SustainAssessError):
    """Raised when a requested assessment or report does not exist."""

    code = "not_found"


class AuthenticationError(SustainAssessError):
    """Raised when company credentials do not match."""

    code = "invalid_credentials"


class ExternalServiceError(SustainAssessError):
    """Raised when the text-generation service is unreachable or malformed."""

    code = "external_service_error"


class PersistenceError(SustainAssessError):
    """Raised when a record cannot be persisted, e.g. id collisions persist."""

    code = "persistence_error"
