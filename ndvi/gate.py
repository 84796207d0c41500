"""Process-wide limit on in-flight upstream extraction tasks."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from django.conf import settings

from .metrics import ndvi_gate_rejections_total

logger = logging.getLogger(__name__)

MAX_CONCURRENT_REQUESTS = int(
    getattr(settings, "NDVI_MAX_CONCURRENT_REQUESTS", 1)
)


class GateBusy(Exception):
    """Raised when every slot is taken; callers should retry later."""

    def __init__(self, max_in_flight: int) -> None:
        super().__init__(
            f"Maximum of {max_in_flight} concurrent NDVI requests reached. "
            "Try again in a few seconds."
        )
        self.max_in_flight = max_in_flight


class ConcurrencyGate:
    """Rejects, never queues, work beyond `max_in_flight`."""

    def __init__(self, max_in_flight: int = MAX_CONCURRENT_REQUESTS) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self.max_in_flight = max_in_flight
        self._slots = threading.BoundedSemaphore(max_in_flight)
        self._lock = threading.Lock()
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @contextmanager
    def slot(self) -> Iterator[None]:
        if not self._slots.acquire(blocking=False):
            ndvi_gate_rejections_total.inc()
            logger.info(
                "ndvi.gate.rejected max_in_flight=%s", self.max_in_flight
            )
            raise GateBusy(self.max_in_flight)
        with self._lock:
            self._in_flight += 1
        try:
            yield
        finally:
            with self._lock:
                self._in_flight -= 1
            self._slots.release()


series_gate = ConcurrencyGate()
