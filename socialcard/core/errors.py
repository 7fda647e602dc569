"""Error normalization and handlers."""

import logging
from typing import Optional
from uuid import uuid4

from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from starlette.requests import Request

from socialcard.core.logging import get_request_id


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, ValueError):
    code = "not_found"
    status_code = 404


class RateLimitExceededError(AppError):
    """GitHub budget is below the configured floor; no card work was attempted."""
    code = "rate_limit_exceeded"
    status_code = 403


class RemoteFetchError(AppError):
    """A remote data API call failed. An upstream 404 keeps its status."""
    code = "remote_fetch_failed"
    status_code = 502

    def __init__(self, message: str, *, upstream_status: Optional[int] = None, **kwargs):
        if upstream_status == 404:
            kwargs.setdefault("status_code", 404)
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status


class RenderError(AppError):
    code = "render_failed"
    status_code = 500


class StorageError(AppError):
    code = "storage_failed"
    status_code = 500


class CardGenerationError(AppError):
    """Internal failure of one generation stage ("render" or "storage").

    Never reaches a client: the card services log it and raise NotFoundError.
    """
    code = "card_generation_failed"
    status_code = 500

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"{stage} stage failed: {cause}")
        self.stage = stage
        self.cause = cause


class BatchGenerationError(AppError):
    """At least one card of a local batch failed."""
    code = "batch_failed"

    def __init__(self, failures: dict):
        super().__init__(f"{len(failures)} card(s) failed: {', '.join(str(k) for k in failures)}")
        self.failures = failures


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, message: str, request_id: str) -> dict:
    return {
        "error": {"code": code, "message": message, "request_id": request_id},
        "detail": message,
    }


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    payload = _error_payload(exc.code, exc.message, rid)
    logger = logging.getLogger("socialcard")
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    message = exc.detail if exc.detail else "HTTP error"
    payload = _error_payload(code, message, rid)
    logger = logging.getLogger("socialcard")
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    # 405 carries an Allow header
    response = JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))
    response.headers["x-request-id"] = rid
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError):
    rid = _extract_request_id(request)
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("path", "query"))
        problems.append(f"{field}: {err.get('msg', 'invalid')}" if field else err.get("msg", "invalid"))
    message = "; ".join(problems) or "Invalid request"
    payload = _error_payload(ValidationError.code, message, rid)
    logger = logging.getLogger("socialcard")
    logger.warning("validation.error", extra={"request_id": rid, "error_code": ValidationError.code, "status": 422})
    response = JSONResponse(status_code=422, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger = logging.getLogger("socialcard")
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    payload = _error_payload("internal_error", "Unexpected error", rid)
    response = JSONResponse(status_code=500, content=payload)
    response.headers["x-request-id"] = rid
    return response
