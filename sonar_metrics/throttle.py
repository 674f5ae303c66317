"""Request pacing.

Detail fetches are issued one after the other. Each fetch runs inside the
limiter::

    with limiter:
        sources = client.fetch_source_lines(key)

Entering blocks until ``interval`` seconds have passed since the previous
fetch *finished*; leaving stamps the finish time. The pause therefore
follows each response, however long the response itself took.
"""

import time
from typing import Callable

DEFAULT_INTERVAL = 0.1


class RateLimiter:
    """Enforce a minimum pause between one response and the next request."""

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.interval = interval
        self._sleep = sleep
        self._clock = clock
        self._finished: float | None = None

    def wait(self) -> None:
        """Sleep for whatever is left of the pause since the last ``done()``."""
        if self._finished is not None and self.interval > 0:
            remaining = self.interval - (self._clock() - self._finished)
            if remaining > 0:
                self._sleep(remaining)

    def done(self) -> None:
        """Mark the end of a request; the next pause is counted from here."""
        self._finished = self._clock()

    def __enter__(self) -> "RateLimiter":
        self.wait()
        return self

    def __exit__(self, *exc_info) -> None:
        self.done()
