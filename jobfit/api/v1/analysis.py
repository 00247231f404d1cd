from fastapi import APIRouter, Request

from jobfit.core.rate_limit import client_key, rate_limit
from jobfit.core.single_flight import analysis_flight
from jobfit.schemas.analysis import AnalysisResult, AutofillRequest, JobDetails, JobInput
from jobfit.services.analysis_service import analyze_job_fit, detect_job_details

router = APIRouter()


@router.post("/analyze", response_model=AnalysisResult)
@rate_limit()
async def analyze(request: Request, payload: JobInput):
    async with analysis_flight.acquire(client_key(request)):
        return await analyze_job_fit(payload)


@router.post("/autofill", response_model=JobDetails)
@rate_limit()
async def autofill(request: Request, payload: AutofillRequest):
    _ = request
    return await detect_job_details(payload.job_description)
