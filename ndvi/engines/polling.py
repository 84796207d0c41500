"""Bounded polling for asynchronous upstream tasks."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

TERMINAL_DONE: Final[str] = "done"
TERMINAL_FAILED: Final[str] = "failed"


@dataclass(frozen=True)
class PollOutcome:
    status: str
    attempts: int

    @property
    def timed_out(self) -> bool:
        return self.status not in (TERMINAL_DONE, TERMINAL_FAILED)


@dataclass(frozen=True)
class PollPolicy:
    """Constant-interval polling with a hard attempt ceiling.

    The policy only decides when to wait and when to stop; callers supply
    the status fetch and the sleep function, so the same policy works with
    blocking threads and with fakes in tests.
    """

    interval_seconds: float = 4.0
    max_attempts: int = 60

    def run(
        self,
        fetch_status: Callable[[int], str | None],
        *,
        sleep: Callable[[float], None] = time.sleep,
        initial_status: str = "pending",
    ) -> PollOutcome:
        status = initial_status
        attempts = 0
        while status != TERMINAL_DONE and attempts < self.max_attempts:
            sleep(self.interval_seconds)
            status = fetch_status(attempts) or status
            attempts += 1
            if status == TERMINAL_FAILED:
                break
        return PollOutcome(status=status, attempts=attempts)
