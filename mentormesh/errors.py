# mentormesh/errors.py
"""
Domain exceptions and the handlers that turn them into JSON responses.

Services raise these; routers never build error responses themselves.
Every failure leaves the API in the same envelope:

    {"success": false, "message": "...", "code": "...", "errors": [...]}
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from mentormesh.config import get_settings

logger = logging.getLogger(__name__)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.errors = errors or []
        self.extra = extra or {}
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "message": self.message,
            "code": self.code,
        }
        if self.errors:
            payload["errors"] = list(self.errors)
        payload.update(self.extra)
        return payload


class ValidationException(DomainException):
    """Input is malformed or breaks a field rule; `errors` lists every violation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundException(DomainException):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictException(DomainException):
    """Clashes with existing data (overlap, already booked, duplicate key)."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class BusinessRuleException(DomainException):
    """The resource is in a state that does not allow the operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "precondition_failed"


def _failure(status_code: int, message: str, code: str, errors: Optional[List[str]] = None) -> JSONResponse:
    payload: Dict[str, Any] = {"success": False, "message": message, "code": code}
    if errors:
        payload["errors"] = errors
    return JSONResponse(payload, status_code=status_code)


def describe_validation_error(error: Dict[str, Any]) -> str:
    # ("body", "start_time") -> "start_time: Field required"
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    msg = error.get("msg", "Invalid value")
    return f"{field}: {msg}" if field else msg


def register_error_handlers(app: FastAPI) -> None:
    settings = get_settings()

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(jsonable_encoder(exc.to_payload()), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _failure(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            ValidationException.code,
            [describe_validation_error(e) for e in exc.errors()],
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        code = "not_found" if exc.status_code == status.HTTP_404_NOT_FOUND else "http_error"
        return _failure(exc.status_code, message, code)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return _failure(
            status.HTTP_409_CONFLICT,
            "Resource conflicts with existing data",
            ConflictException.code,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        errors = [f"{type(exc).__name__}: {exc}"] if settings.ENV == "dev" else None
        return _failure(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server error while processing request",
            "internal_error",
            errors,
        )
