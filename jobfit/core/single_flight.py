from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from jobfit.core.errors import OperationInProgressError


class SingleFlight:
    """Allows at most one outstanding operation per client key.

    A second request for a busy key is rejected rather than queued. All
    callers share one event loop, so the set needs no lock.
    """

    def __init__(self, operation: str):
        self._operation = operation
        self._active: set[str] = set()

    def is_active(self, key: str) -> bool:
        return key in self._active

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        if key in self._active:
            raise OperationInProgressError(
                f"{self._operation.capitalize()} already in progress",
                f"Wait for the current {self._operation} to finish before starting another one.",
            )
        self._active.add(key)
        try:
            yield
        finally:
            self._active.discard(key)

    def clear(self) -> None:
        self._active.clear()


extraction_flight = SingleFlight("extraction")
analysis_flight = SingleFlight("analysis")
