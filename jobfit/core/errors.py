from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "The AI was unable to complete the analysis."
ANALYSIS_FAILED_DETAIL = (
    "This can happen when content filters block the request or the AI service is unreachable. "
    "Please try again in a moment."
)


class JobFitError(Exception):
    """Base error carrying a user-facing notification."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str, detail: str | None = None, *, fields: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.fields = list(fields) if fields else None

    def to_payload(self) -> dict:
        payload: dict = {"message": self.message, "detail": self.detail}
        if self.fields:
            payload["fields"] = self.fields
        return payload


class ValidationError(JobFitError):
    code = "validation_error"


class OperationInProgressError(JobFitError):
    status_code = status.HTTP_409_CONFLICT
    code = "operation_in_progress"


class ExtractionError(JobFitError):
    status_code = 422
    code = "extraction_failed"

    def __init__(self, detail: str, *, message: str = "Extraction failed"):
        super().__init__(message, detail)


class EmptyDocumentError(ExtractionError):
    code = "empty_document"

    def __init__(self, detail: str):
        super().__init__(
            f"{detail} It may be a scanned or image-only file; paste the text manually instead.",
            message="No readable text found",
        )


class AnalysisError(JobFitError):
    """Terminal failure of a backend call.

    ``cause`` is kept for logs only; the user always sees the generic message.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "analysis_failed"

    def __init__(
        self,
        cause: str,
        *,
        message: str = ANALYSIS_FAILED_MESSAGE,
        detail: str = ANALYSIS_FAILED_DETAIL,
    ):
        super().__init__(message, detail)
        self.cause = cause

    def __str__(self) -> str:
        return self.cause


class EmptyResponseError(AnalysisError):
    code = "empty_response"


class MalformedResponseError(AnalysisError):
    code = "malformed_response"


class SchemaMismatchError(MalformedResponseError):
    code = "schema_mismatch"


class AnalysisUnavailableError(AnalysisError):
    code = "llm_unavailable"


async def jobfit_error_handler(request: Request, exc: JobFitError) -> JSONResponse:
    if isinstance(exc, AnalysisError):
        logger.warning("request_failed path=%s code=%s cause=%s", request.url.path, exc.code, exc.cause)
    else:
        logger.info("request_rejected path=%s code=%s message=%s", request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


_REQUEST_PARTS = {"body", "query", "path", "header", "cookie"}


def _field_name(loc: tuple) -> str | None:
    names = [str(part) for part in loc if isinstance(part, str) and part not in _REQUEST_PARTS]
    return names[0] if names else None


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: list[str] = []
    problems: list[str] = []
    for error in exc.errors():
        name = _field_name(tuple(error.get("loc", ())))
        if name and name not in fields:
            fields.append(name)
        problems.append(f"{name}: {error.get('msg')}" if name else str(error.get("msg")))
    return await jobfit_error_handler(
        request,
        ValidationError("Invalid request", "; ".join(problems) or None, fields=fields),
    )
