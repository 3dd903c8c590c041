"""Application error taxonomy and the FastAPI handlers that render it.

Every error leaves the API in the same envelope::

    {"success": false, "error": {"type": "...", "message": "...", "details": [...]}}
"""

import logging
from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.settings import get_settings

logger = logging.getLogger(__name__)


class AuthErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_SESSION = "invalid_session"
    USER_NOT_FOUND = "user_not_found"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"


class AuthorizationErrorKind(str, Enum):
    MISSING_PERMISSION = "missing_permission"


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "internal_error"

    def __init__(self, message: str, details: Optional[list[Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"

    def __init__(self, errors: list[str]):
        super().__init__("Validation failed: " + "; ".join(errors), details=list(errors))
        self.errors = list(errors)


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "authentication_error"

    _messages = {
        AuthErrorKind.MISSING_CREDENTIAL: "Authorization credential required",
        AuthErrorKind.INVALID_SESSION: "Invalid or expired session",
        AuthErrorKind.USER_NOT_FOUND: "User not found",
        AuthErrorKind.INVALID_OR_EXPIRED_TOKEN: "Invalid or expired API token",
    }

    def __init__(self, kind: AuthErrorKind):
        super().__init__(self._messages[kind])
        self.kind = kind


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_type = "authorization_error"

    def __init__(self, kind: AuthorizationErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"


class UpstreamError(AppError):
    error_type = "upstream_error"


def _envelope(error_type: str, message: str, details: Optional[list[Any]] = None) -> dict:
    return {
        "success": False,
        "error": {"type": error_type, "message": message, "details": details or []},
    }


def _caller_id(request: Request) -> Optional[str]:
    principal = getattr(request.state, "principal", None)
    return getattr(principal, "id", None)


def format_validation_errors(errors: list[dict]) -> list[str]:
    """Turn pydantic error dicts into ``items[0].description: message`` strings."""
    messages = []
    for err in errors:
        parts: list[str] = []
        for segment in err.get("loc", ()):
            if segment in ("body", "query", "path"):
                continue
            if isinstance(segment, int):
                if parts:
                    parts[-1] = f"{parts[-1]}[{segment}]"
                else:
                    parts.append(f"[{segment}]")
            else:
                parts.append(str(segment))
        field = ".".join(parts)
        msg = err.get("msg", "invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return messages


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    message = exc.message
    details = exc.details
    if isinstance(exc, UpstreamError):
        logger.error(
            "Upstream failure on %s %s (caller=%s): %s",
            request.method,
            request.url.path,
            _caller_id(request),
            exc.message,
            exc_info=exc,
        )
        if not get_settings().is_development:
            message = "Internal server error"
            details = []
    elif isinstance(exc, (AuthenticationError, AuthorizationError)):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_envelope(exc.error_type, message, details))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(format_validation_errors(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=_envelope(error.error_type, error.message, error.errors))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s (caller=%s)",
        request.method,
        request.url.path,
        _caller_id(request),
        exc_info=exc,
    )
    message = str(exc) if get_settings().is_development else "Internal server error"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_envelope("internal_error", message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
