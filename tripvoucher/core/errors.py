"""Error taxonomy for voucher and expense operations plus FastAPI handlers.

Domain services raise the typed errors below; ``register_error_handlers``
maps each kind to a status code and a stable ``error`` slug. Store failures
are logged with their traceback but reach the client only as a generic
``internal_error``.
"""

from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger("tripvoucher.errors")


class VoucherAppError(Exception):
    """Base class for every failure a core operation may raise."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def detail(self) -> object:
        return self.message


class ValidationError(VoucherAppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error = "validation_error"

    def __init__(self, fields: Dict[str, List[str]], message: str = "invalid input"):
        super().__init__(message)
        self.fields = fields

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def detail(self) -> object:
        return self.fields

    def __str__(self) -> str:
        parts = [f"{name}: {', '.join(msgs)}" for name, msgs in self.fields.items()]
        return "; ".join(parts) or self.message


class NotFound(VoucherAppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"


class Forbidden(VoucherAppError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "forbidden"


class VoucherImmutable(VoucherAppError):
    status_code = status.HTTP_409_CONFLICT
    error = "voucher_immutable"


class InvalidTransition(VoucherAppError):
    status_code = status.HTTP_409_CONFLICT
    error = "invalid_transition"


class StoreFailure(VoucherAppError):
    error = "internal_error"

    def detail(self) -> object:
        return "An unexpected error occurred."


class InvalidCredential(VoucherAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "invalid_credential"


def domain_error_handler(request: Request, exc: VoucherAppError):  # type: ignore
    if isinstance(exc, StoreFailure):
        logger.error("store failure on %s %s: %s", request.method, request.url.path, exc.message)
    headers: Optional[Dict[str, str]] = None
    if isinstance(exc, InvalidCredential):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.detail()},
        headers=headers,
    )


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        detail = exc.detail if exc.detail != "Not Found" else f"No route for {request.method} {request.url.path}"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "not_found", "detail": detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    fields: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        fields.setdefault(".".join(loc) or "body", []).append(err.get("msg", "invalid"))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "validation_error", "detail": fields},
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(VoucherAppError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, server_error_handler)
