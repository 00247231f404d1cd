from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from jobfit.ai.factory import get_ai_client
from jobfit.ai.types import AIClient
from jobfit.analysis.prompt import JOB_DETAILS_SCHEMA, build_analysis_request, build_job_details_prompt
from jobfit.analytics.db import log_ai_analysis_run
from jobfit.core.config import settings
from jobfit.core.errors import (
    AnalysisError,
    AnalysisUnavailableError,
    EmptyResponseError,
    MalformedResponseError,
    SchemaMismatchError,
    ValidationError,
)
from jobfit.schemas.analysis import AnalysisResult, JobDetails, JobInput

logger = logging.getLogger(__name__)

_REQUIRED_INPUT_FIELDS = (
    ("company_name", "companyName", "company name"),
    ("role_title", "roleTitle", "role title"),
    ("resume_text", "resumeText", "resume"),
    ("job_description", "jobDescription", "job description"),
)


def validate_job_input(job_input: JobInput) -> None:
    missing = [
        (alias, label)
        for name, alias, label in _REQUIRED_INPUT_FIELDS
        if not (getattr(job_input, name) or "").strip()
    ]
    if missing:
        raise ValidationError(
            "Missing required information",
            f"Please provide the {', '.join(label for _, label in missing)}.",
            fields=[alias for alias, _ in missing],
        )


def _client_model(client: AIClient, override: str | None = None) -> str:
    return override or getattr(client, "model", None) or "unknown"


def _log_ai_run(
    *,
    run_id: str,
    kind: str,
    model: str,
    status: str,
    started: float,
    error_code: str | None = None,
) -> None:
    try:
        log_ai_analysis_run(
            run_id=run_id,
            kind=kind,
            model=model,
            status=status,
            error_code=error_code,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
    except Exception:  # pragma: no cover
        logger.debug("ai_run_logging_failed", exc_info=True)


async def _generate_json(
    client: AIClient,
    prompt: str,
    schema: dict[str, Any],
    *,
    model: str | None = None,
) -> Any:
    try:
        text = await client.generate_json(prompt, schema, model=model)
    except Exception as exc:  # noqa: BLE001 - every backend failure is terminal for this call
        raise AnalysisUnavailableError(f"{type(exc).__name__}: {exc}") from exc

    if not text or not text.strip():
        raise EmptyResponseError("Empty response from AI.")
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Response is not valid JSON: {exc}") from exc


async def run_analysis(prompt: str, schema: dict[str, Any], client: AIClient | None = None) -> AnalysisResult:
    client = client or get_ai_client()
    run_id = uuid.uuid4().hex
    model = _client_model(client)
    started = time.perf_counter()

    try:
        payload = await _generate_json(client, prompt, schema)
        try:
            result = AnalysisResult.model_validate(payload)
        except SchemaValidationError as exc:
            raise SchemaMismatchError(f"Response does not match the analysis schema: {exc}") from exc
    except AnalysisError as exc:
        logger.warning(
            "analysis_failed run_id=%s code=%s model=%s prompt_len=%s: %s",
            run_id,
            exc.code,
            model,
            len(prompt),
            exc.cause,
        )
        _log_ai_run(run_id=run_id, kind="analysis", model=model, status="error", started=started, error_code=exc.code)
        raise

    _log_ai_run(run_id=run_id, kind="analysis", model=model, status="success", started=started)
    logger.info(
        "analysis_completed run_id=%s model=%s match_score=%s ats_score=%s",
        run_id,
        model,
        result.match_score,
        result.ats_score,
    )
    return result


async def analyze_job_fit(job_input: JobInput, client: AIClient | None = None) -> AnalysisResult:
    validate_job_input(job_input)
    request = build_analysis_request(job_input)
    return await run_analysis(request.prompt, request.schema, client=client)


async def detect_job_details(job_description: str, client: AIClient | None = None) -> JobDetails:
    if not (job_description or "").strip():
        raise ValidationError(
            "Job Description Empty",
            "Paste the job description first so the company and role can be detected.",
            fields=["jobDescription"],
        )

    client = client or get_ai_client()
    run_id = uuid.uuid4().hex
    model = _client_model(client, settings.ai_fast_model)
    started = time.perf_counter()

    try:
        payload = await _generate_json(
            client,
            build_job_details_prompt(job_description),
            JOB_DETAILS_SCHEMA,
            model=settings.ai_fast_model,
        )
        if not isinstance(payload, dict):
            raise SchemaMismatchError("Job details response is not a JSON object.")
    except AnalysisError as exc:
        logger.warning("autofill_failed run_id=%s code=%s model=%s: %s", run_id, exc.code, model, exc.cause)
        _log_ai_run(run_id=run_id, kind="autofill", model=model, status="error", started=started, error_code=exc.code)
        raise AnalysisError(exc.cause, message="Auto-fill failed", detail="Could not detect details.") from exc

    _log_ai_run(run_id=run_id, kind="autofill", model=model, status="success", started=started)
    return JobDetails(
        company_name=str(payload.get("companyName") or "").strip(),
        role_title=str(payload.get("roleTitle") or "").strip(),
    )
