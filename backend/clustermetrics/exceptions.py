from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.request_context import request_id_var


logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application error carrying the HTTP status it maps to."""

    status_code: int = 500
    code: str = "APP_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details or {}


class ProviderUnavailable(AppException):
    """The cluster metrics source could not answer (listing or capacity lookup)."""

    status_code = 503
    code = "PROVIDER_UNAVAILABLE"


class PersistenceError(AppException):
    """The metrics table could not be read or written."""

    code = "PERSISTENCE_ERROR"


class PersistenceWriteFailure(PersistenceError):
    code = "PERSISTENCE_WRITE_FAILURE"


class PersistenceTransactionFailure(PersistenceError):
    """A multi-statement mutation was rolled back; storage is unchanged."""

    code = "PERSISTENCE_TRANSACTION_FAILURE"


class StartupFailure(AppException):
    """Cluster access or storage could not be established; the process must not serve."""

    code = "STARTUP_FAILURE"


def _build_error_payload(message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": message}
    if details:
        payload["details"] = details
    return payload


def _headers() -> Dict[str, str]:
    rid = request_id_var.get()
    return {"X-Request-ID": rid} if rid else {}


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": <message>}`` with the mapped status."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        message = exc.detail if isinstance(exc.detail, str) else "request failed"
        logger.warning("HTTPException: status=%s path=%s", exc.status_code, request.url.path)
        return JSONResponse(status_code=exc.status_code, content=_build_error_payload(message), headers=_headers())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        errors = exc.errors()
        logger.info("ValidationError: path=%s errors=%d", request.url.path, len(errors))
        payload = _build_error_payload("request validation failed", {"errors": jsonable_encoder(errors)})
        return JSONResponse(status_code=422, content=payload, headers=_headers())

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):  # type: ignore[override]
        logger.warning(
            "AppException: status=%s code=%s path=%s message=%s",
            exc.status_code,
            exc.code,
            request.url.path,
            exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_build_error_payload(exc.message, exc.details),
            headers=_headers(),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.exception("UnhandledException: path=%s", request.url.path)
        return JSONResponse(status_code=500, content=_build_error_payload("internal server error"), headers=_headers())
