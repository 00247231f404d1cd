import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from jobfit.analytics.db import init_db, purge_old_records
from jobfit.core.config import require_ai_credentials, settings
from jobfit.core.single_flight import analysis_flight, extraction_flight

logger = logging.getLogger(__name__)

PURGE_INTERVAL_S = 3600


async def _purge_analytics(stop_event: asyncio.Event, interval_s: float = PURGE_INTERVAL_S) -> None:
    while not stop_event.is_set():
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=interval_s)
        if stop_event.is_set():
            return
        try:
            deleted = purge_old_records()
        except Exception as exc:  # pragma: no cover
            logger.warning("analytics_purge_failed: %s", exc)
            continue
        if deleted:
            logger.info("analytics_purge deleted=%s", deleted)


@asynccontextmanager
async def lifespan(app):
    require_ai_credentials()
    init_db()
    logger.info(
        "jobfit_started provider=%s model=%s fast_model=%s max_upload_mb=%s pdf_max_pages=%s",
        settings.ai_provider,
        settings.ai_model,
        settings.ai_fast_model,
        settings.max_upload_mb,
        settings.pdf_max_pages,
    )

    stop_event = asyncio.Event()
    purge_task = asyncio.create_task(_purge_analytics(stop_event))
    try:
        yield
    finally:
        stop_event.set()
        await purge_task
        extraction_flight.clear()
        analysis_flight.clear()
