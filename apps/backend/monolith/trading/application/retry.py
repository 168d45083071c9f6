"""
Bounded retry policy with exponential backoff.

Used by the trade executor (store conflicts) and the price feed (cache
writes). The policy holds the configuration and builds a tenacity
`Retrying` controller from it; callers decide which exceptions are
retryable.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _skip_zero(sleep: Callable[[float], None]) -> Callable[[float], None]:
    def wait(seconds: float) -> None:
        if seconds > 0:
            sleep(seconds)
    return wait


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        initial_delay_seconds: Delay before the second attempt
        backoff_multiplier: Factor applied to the delay after each retry
        max_delay_seconds: Upper bound for a single delay
    """

    max_attempts: int = 3
    initial_delay_seconds: float = 0.0
    backoff_multiplier: float = 2.0
    max_delay_seconds: float = 30.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("delays must not be negative")

    @classmethod
    def from_settings(cls, config: dict) -> "RetryPolicy":
        """Build from a settings dict such as LEDGER['PRICE_FEED_RETRY']."""
        return cls(
            max_attempts=int(config.get("MAX_ATTEMPTS", cls.max_attempts)),
            initial_delay_seconds=float(config.get("INITIAL_DELAY_SECONDS", cls.initial_delay_seconds)),
            backoff_multiplier=float(config.get("BACKOFF_MULTIPLIER", cls.backoff_multiplier)),
            max_delay_seconds=float(config.get("MAX_DELAY_SECONDS", cls.max_delay_seconds)),
        )

    def retrying(
        self,
        retry_on: tuple[type[BaseException], ...],
        sleep: Callable[[float], None] = time.sleep,
    ) -> Retrying:
        """Tenacity controller for this policy. The last error is re-raised as is."""
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.initial_delay_seconds,
                exp_base=self.backoff_multiplier,
                max=self.max_delay_seconds,
            ),
            retry=retry_if_exception_type(retry_on),
            before_sleep=before_sleep_log(logger, logging.INFO),
            sleep=_skip_zero(sleep),
            reraise=True,
        )

    def run(
        self,
        fn: Callable[[], T],
        retry_on: tuple[type[BaseException], ...],
        sleep: Callable[[float], None] = time.sleep,
        label: str = "operation",
    ) -> T:
        """
        Call `fn` until it succeeds or attempts are exhausted.

        Exceptions not listed in `retry_on` propagate immediately. The last
        retryable exception is re-raised once attempts run out.
        """
        retrying = self.retrying(retry_on, sleep=sleep)
        try:
            return retrying(fn)
        except retry_on as e:
            attempts = retrying.statistics.get("attempt_number", 1)
            logger.warning(f"{label} failed after {attempts} attempt(s): {e}")
            raise
