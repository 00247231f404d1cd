import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from jobfit.api.v1.health import router as health_router
from jobfit.api.v1.extraction import router as extraction_router
from jobfit.api.v1.analysis import router as analysis_router
from jobfit.api.v1.analytics import router as analytics_router
from jobfit.core.cors import cors_allow_origin_regex, cors_allowed_origins
from jobfit.core.errors import JobFitError, jobfit_error_handler, request_validation_handler
from jobfit.core.rate_limit import limiter
from jobfit.core.config import settings
from jobfit.core.lifespan import lifespan

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="JobFit Analysis API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_origin_regex=cors_allow_origin_regex(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(JobFitError, jobfit_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(extraction_router, prefix="/v1", tags=["Extraction"])
app.include_router(analysis_router, prefix="/v1", tags=["Analysis"])
app.include_router(analytics_router, prefix="/v1", tags=["Analytics"])
