"""In-flight request tracking so shutdown can drain store writes.

A share or unshare is a two-step move across namespaces; letting the
request finish before closing Redis keeps the window where a record sits
in both namespaces (or neither) as short as the store allows.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from src.roomify.core.logging import get_logger

logger = get_logger(__name__)


class RequestTracker:
    """Counts in-flight requests and signals once they have drained.

    All updates happen on the event loop without an await between read and
    write, so the counter needs no lock.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Return to the accepting state. For testing only."""
        self._in_flight = 0
        self._drain_started: float | None = None
        self._drained = asyncio.Event()

    @property
    def is_shutting_down(self) -> bool:
        return self._drain_started is not None

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    def _release(self) -> None:
        self._in_flight -= 1
        if self._in_flight == 0 and self.is_shutting_down:
            self._drained.set()

    @asynccontextmanager
    async def track_request(self) -> AsyncGenerator[None]:
        self._in_flight += 1
        try:
            yield
        finally:
            self._release()

    async def start_shutdown(self) -> None:
        """Mark the process as draining and arm the drain event."""
        if self._drain_started is None:
            self._drain_started = time.monotonic()
        logger.info("Shutdown started", in_flight=self._in_flight)
        if self._in_flight == 0:
            self._drained.set()

    async def wait_for_drain(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds. Returns False if requests were still running."""
        try:
            await asyncio.wait_for(self._drained.wait(), timeout=timeout)
        except TimeoutError:
            logger.warning("Drain timed out", timeout=timeout, in_flight=self._in_flight)
            return False
        started = self._drain_started or time.monotonic()
        logger.info("Requests drained", waited_seconds=round(time.monotonic() - started, 3))
        return True


request_tracker = RequestTracker()
