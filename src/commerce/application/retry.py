"""Bounded retry for transient persistence conflicts.

Only ``TransientPersistenceError`` is retried.  Business failures
(insufficient stock, invalid coupon) would fail identically on a rerun,
so they propagate on the first attempt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from commerce.domain.exceptions import TransientPersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:

    max_attempts: int = 3
    backoff_seconds: float = 0.05
    max_backoff_seconds: float = 1.0

    def run(self, fn: Callable[..., T], *args, **kwargs) -> T:
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.backoff_seconds, max=self.max_backoff_seconds
            ),
            retry=retry_if_exception_type(TransientPersistenceError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        return retrying(fn, *args, **kwargs)
