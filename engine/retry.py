"""Bounded fixed-delay retry around a single destination call."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _never(_error: Exception) -> bool:
    return False


@dataclass
class RetryPolicy:
    """Retry ``fn`` up to ``max_retries`` extra times with a fixed delay.

    ``is_retryable`` is consulted only while retries remain. It may mutate
    state the wrapped callable reads, which is how one-shot fallbacks (private
    sharing, a shortened track list) feed into the next attempt.
    """

    max_retries: int = 0
    initial_delay: float = 1.0
    is_retryable: Callable[[Exception], bool] = _never
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], None] = time.sleep

    def run(self, fn: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return fn()
            except Exception as exc:
                if attempt >= self.max_retries or not self.is_retryable(exc):
                    raise
                attempt += 1
                logger.info(
                    "retry_scheduled attempt=%s max_retries=%s delay=%s error=%s",
                    attempt,
                    self.max_retries,
                    self.initial_delay,
                    exc,
                )
                if self.on_retry is not None:
                    self.on_retry(attempt, exc, self.initial_delay)
                if self.initial_delay > 0:
                    self.sleep(self.initial_delay)
