"""
Fixed-interval attempt budget for the poll loop.

The portal produces results incrementally; the poll loop asks again after a
fixed delay until the provider reports completion or the budget runs out.

Usage:
    >>> from flights_finder.retry import PollBudget
    >>>
    >>> budget = PollBudget(max_attempts=3, interval=1.0)
    >>> for attempt in budget:
    ...     if poll(attempt).finished:
    ...         break
    ... else:
    ...     raise RetryBudgetExhausted(budget.max_attempts)
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, Optional

from .config import get_config
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class PollBudget:
    """
    Iterator over 1-based attempt numbers with a fixed sleep between attempts.

    No sleep happens before the first attempt or after the last one.

    Attributes:
        max_attempts: Maximum number of attempts
        interval: Delay between attempts in seconds
        attempts_made: Number of attempts handed out so far
    """

    def __init__(
        self,
        max_attempts: Optional[int] = None,
        interval: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        config = get_config()

        self.max_attempts = max_attempts if max_attempts is not None else config.max_poll_retries
        self.interval = interval if interval is not None else config.poll_interval_seconds
        self._sleep = sleep
        self.attempts_made = 0

        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts", self.max_attempts, "must be at least 1")

    def __iter__(self) -> Iterator[int]:
        self.attempts_made = 0
        while self.attempts_made < self.max_attempts:
            if self.attempts_made:
                logger.debug(
                    f"Attempt {self.attempts_made}/{self.max_attempts} not finished. "
                    f"Retrying in {self.interval:.2f}s..."
                )
                self._sleep(self.interval)
            self.attempts_made += 1
            yield self.attempts_made

    @property
    def exhausted(self) -> bool:
        return self.attempts_made >= self.max_attempts


__all__ = [
    "PollBudget",
]
