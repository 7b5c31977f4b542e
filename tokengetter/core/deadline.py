"""Whole-run deadline.

A run is allowed a fixed wall-clock budget from process start (see
Settings.run_timeout_seconds). Rather than cancelling work from another
thread, each blocking call asks the deadline for what is left and uses
that as its own timeout. The GitHub exchange also re-checks it between
response chunks, since httpx timeouts bound each read, not the total.
"""

import time
from typing import Callable

from tokengetter.errors import DeadlineExceededError


class Deadline:
    def __init__(
        self,
        seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.seconds = seconds
        self._clock = clock
        self._expires = clock() + seconds

    def remaining(self) -> float:
        """Seconds left before the deadline.

        Raises DeadlineExceededError once the budget is used up, so
        callers never start a request with a zero or negative timeout.
        """
        left = self._expires - self._clock()
        if left <= 0:
            raise DeadlineExceededError(
                f"Run deadline of {self.seconds:g}s exceeded"
            )
        return left
