from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jobfit.schemas.analysis import AnalysisResult, JobDetails, JobInput, schema_descriptor

ANALYSIS_TASKS = (
    'Calculate a "Match Score" (Overall Fit) and an "ATS Compatibility Score".',
    'Provide a "Match Breakdown" (0-100) for Skills, Experience, Education, and Potential Fit.',
    'Provide "Match Evidence": for each breakdown category, give 1 sentence of direct evidence '
    "from the resume that justifies the score.",
    'Provide an "ATS Breakdown" (0-100) for Keywords, Formatting, Readability, and Structure.',
    'List specific ATS warnings (e.g. "Multi-column layout detected", "Missing contact header").',
    "Identify matched skills and missing critical keywords.",
    "Generate 3-4 high-impact, tailored resume bullet points using the STAR format.",
    "Provide estimated market salary insights.",
    "Write a persuasive, metric-driven cover letter.",
    "Provide a referral strategy with a networking script.",
)

JOB_DETAILS_SCHEMA: dict[str, Any] = schema_descriptor(JobDetails)


@dataclass(frozen=True)
class AnalysisRequest:
    prompt: str
    schema: dict[str, Any]


def build_analysis_prompt(job_input: JobInput) -> str:
    tasks = "\n".join(f"{index}. {task}" for index, task in enumerate(ANALYSIS_TASKS, start=1))
    return (
        "As an elite Technical Recruiter and Career Coach, perform a precise, deterministic analysis.\n\n"
        "CRITICAL: Your goal is absolute consistency. Analyze the relationship between the resume "
        "and the job description with mathematical rigor.\n\n"
        f"COMPANY: {job_input.company_name}\n"
        f"ROLE: {job_input.role_title}\n\n"
        f"JOB DESCRIPTION:\n{job_input.job_description}\n\n"
        f"RESUME:\n{job_input.resume_text}\n\n"
        f"TASKS:\n{tasks}\n\n"
        "NOTE: Provide your answer ONLY in the requested JSON format."
    )


def build_analysis_request(job_input: JobInput) -> AnalysisRequest:
    # A fresh copy per request so callers cannot mutate the shared descriptor.
    return AnalysisRequest(
        prompt=build_analysis_prompt(job_input),
        schema=schema_descriptor(AnalysisResult),
    )


def build_job_details_prompt(job_description: str) -> str:
    return (
        "Extract the company name and role title from this job description. "
        'Return only valid JSON: {"companyName": "...", "roleTitle": "..."}\n\n'
        f"JD: {job_description}"
    )
