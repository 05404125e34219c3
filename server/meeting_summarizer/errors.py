"""Error taxonomy for the summarization core and its HTTP mapping.

Input errors are rejected before any backend work (400). Provider failures are
surfaced as upstream-class errors (502/503/504). Anything else becomes a 500
with a generic message; the details only go to the log.
"""
import enum
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class RejectionReason(str, enum.Enum):
    EMPTY_TRANSCRIPT = "EmptyTranscript"
    TRANSCRIPT_TOO_LONG = "TranscriptTooLong"
    INVALID_MAX_TOKENS = "InvalidMaxTokens"
    MALFORMED_REQUEST = "MalformedRequest"


class SummaryValidationError(ValueError):
    """A summarization request that must not reach any backend."""

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class AudioValidationError(ValueError):
    """Uploaded audio rejected before transcription."""


class SummarizerError(Exception):
    """Base class for failures raised while a backend is producing a summary."""

    kind = "UpstreamError"
    status_code = 502


class ProviderAuthError(SummarizerError):
    kind = "ProviderAuthFailed"
    status_code = 502


class ProviderRateLimitError(SummarizerError):
    kind = "ProviderRateLimited"
    status_code = 503


class ProviderUnavailableError(SummarizerError):
    kind = "ProviderUnavailable"
    status_code = 503


class ProviderTimeoutError(SummarizerError):
    kind = "ProviderTimeout"
    status_code = 504


class SummaryCancelledError(SummarizerError):
    """The caller's deadline elapsed before the backend finished."""

    kind = "Cancelled"
    status_code = 504


class TranscriptionError(SummarizerError):
    kind = "TranscriptionFailed"
    status_code = 502


_HTTP_KINDS = {
    400: RejectionReason.MALFORMED_REQUEST.value,
    404: "NotFound",
    405: "MethodNotAllowed",
    413: "PayloadTooLarge",
}


def _error_body(kind: str, message: str) -> dict:
    return {"error": {"kind": kind, "message": message}}


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions onto structured JSON responses."""

    @app.exception_handler(SummaryValidationError)
    async def _summary_validation(request: Request, exc: SummaryValidationError):
        logger.info(f"Rejected {request.url.path}: {exc.reason.value} ({exc.message})")
        return JSONResponse(status_code=400, content=_error_body(exc.reason.value, exc.message))

    @app.exception_handler(AudioValidationError)
    async def _audio_validation(request: Request, exc: AudioValidationError):
        logger.info(f"Rejected upload on {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content=_error_body("InvalidAudioFile", str(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        kind = _HTTP_KINDS.get(exc.status_code, "HttpError")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(kind, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _malformed(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        )
        logger.info(f"Malformed request on {request.url.path}: {problems}")
        return JSONResponse(
            status_code=400,
            content=_error_body(RejectionReason.MALFORMED_REQUEST.value, problems or "Malformed request"),
        )

    @app.exception_handler(SummarizerError)
    async def _upstream(request: Request, exc: SummarizerError):
        logger.error(f"Backend failure on {request.url.path}: {exc.kind}: {exc}")
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.kind, str(exc)))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=_error_body("InternalError", "An unexpected error occurred while processing the request"),
        )
