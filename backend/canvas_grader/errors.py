"""Exception hierarchy and the handlers that render it as JSON.

Every error response body has the shape ``{"error": <message>, ...}``;
subclasses may add fields (the raw model output, a partial payload).
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"
CREDENTIALS_MISSING_MESSAGE = "Canvas credentials not found. Please complete onboarding."


class CanvasGraderError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class BadRequestError(CanvasGraderError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CanvasGraderError):
    status_code = status.HTTP_404_NOT_FOUND


class CredentialsNotFoundError(BadRequestError):
    """The user has not configured a Canvas URL and token anywhere."""

    def __init__(self, message: str = CREDENTIALS_MISSING_MESSAGE):
        super().__init__(message)


class CanvasApiError(CanvasGraderError):
    """Canvas answered with a non-success status, or could not be reached."""

    def __init__(self, message: str, *, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class CanvasConnectionError(CanvasApiError):
    """DNS or connect failure reaching the Canvas host."""


class LLMError(CanvasGraderError):
    """The language model call failed."""


class MalformedModelResponseError(CanvasGraderError):
    """The language model's text is not a valid grading JSON object."""

    def __init__(self, raw_response: str, message: str = "Failed to parse AI response"):
        super().__init__(message, extra={"rawResponse": raw_response})
        self.raw_response = raw_response


def internal_error(exc: Exception) -> CanvasGraderError:
    """Wrap an unexpected exception without leaking anything beyond its message."""
    return CanvasGraderError(str(exc) or GENERIC_ERROR_MESSAGE)


async def canvas_grader_error_handler(request: Request, exc: CanvasGraderError):
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    if not parts:
        return "Invalid request"
    return "Invalid request: " + "; ".join(parts)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        {"error": _validation_message(exc)},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CanvasGraderError, canvas_grader_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
