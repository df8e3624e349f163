"""
Domain exceptions and their HTTP translation.

Services raise these; the handlers registered in main.py turn them into
`{"message": ...}` bodies, or `{"errors": {field: [msgs]}}` for validation.
"""
import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base class for business-rule violations."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"message": self.message}


class ValidationError(PortalError):
    """Malformed or out-of-range input, reported per field."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid."):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def to_body(self) -> dict:
        return {"errors": self.errors}


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthorizationError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN


class QuotaExceededError(AuthorizationError):
    """A subscription counter reached zero."""

    def __init__(self, message: str, quota: str):
        super().__init__(message)
        self.quota = quota

    def to_body(self) -> dict:
        return {"message": self.message, "quota": self.quota, "remaining": 0}


class StateError(PortalError):
    """Illegal state transition (e.g. approving a non-pending coupon)."""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(PortalError):
    """Invariant violation (duplicate row, delete with dependents)."""
    status_code = status.HTTP_400_BAD_REQUEST


class ProcessingError(PortalError):
    """Unexpected failure inside a transactional block, after rollback."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.error = error

    def to_body(self) -> dict:
        body = {"message": self.message}
        if self.error:
            body["error"] = self.error
        return body


def _format_validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        # Drop the "body"/"query"/"path" prefix so fields read like the payload keys
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        errors.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON handlers for the domain taxonomy and framework errors."""

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"errors": _format_validation_errors(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )
