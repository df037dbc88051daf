"""Fixed-interval readiness polling with a time budget."""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from .errors import ReadinessTimeoutError
from .models import AppStatus

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_TIMEOUT = 60.0


class PollState(Enum):
    POLLING = "polling"
    READY = "ready"
    TIMED_OUT = "timed_out"
    ERROR = "error"


class ReadinessPoller:
    """Poll a status check until the app is no longer building.

    Every tick sleeps for ``interval`` first, then checks. Errors raised by
    the check propagate immediately.
    """

    def __init__(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.timeout = timeout
        self.sleep = sleep
        self.state = PollState.POLLING
        self.ticks = 0

    def wait(
        self,
        check: Callable[[], AppStatus],
        app_name: str = "",
        timeout: Optional[float] = None,
    ) -> AppStatus:
        budget = self.timeout if timeout is None else timeout
        remaining = budget
        self.state = PollState.POLLING
        self.ticks = 0
        while True:
            self.sleep(self.interval)
            remaining -= self.interval
            self.ticks += 1
            try:
                status = check()
            except Exception:
                self.state = PollState.ERROR
                raise
            if not status.is_app_building:
                self.state = PollState.READY
                logger.debug("%s is ready after %d ticks", app_name, self.ticks)
                return status
            if remaining <= 0:
                self.state = PollState.TIMED_OUT
                logger.debug("%s still building, budget of %ss exhausted", app_name, budget)
                raise ReadinessTimeoutError(app_name, budget)
            logger.debug("%s still building (%ss left)", app_name, remaining)
