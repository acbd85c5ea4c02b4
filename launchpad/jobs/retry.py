"""Bounded retry with exponential backoff for generation sub-tasks."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

from launchpad.config import AppConfig, config as default_config
from .errors import ProviderError

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 5.0
    multiplier: float = 2.0
    max_delay: float = 60.0
    timeout: Optional[float] = 180.0

    @classmethod
    def from_config(cls, cfg: Optional[AppConfig] = None) -> "RetryPolicy":
        cfg = cfg or default_config
        return cls(
            max_attempts=cfg.SUBTASK_MAX_ATTEMPTS,
            initial_delay=cfg.RETRY_INITIAL_DELAY_SECONDS,
            multiplier=cfg.RETRY_BACKOFF_MULTIPLIER,
            max_delay=cfg.RETRY_MAX_DELAY_SECONDS,
            timeout=cfg.SUBTASK_TIMEOUT_SECONDS,
        )

    @property
    def max_retries(self) -> int:
        return max(0, self.max_attempts - 1)

    def delay_for(self, retry_number: int) -> float:
        """Delay before the given retry (1-based)."""
        delay = self.initial_delay * (self.multiplier ** (retry_number - 1))
        return min(delay, self.max_delay)


class RetriesExhausted(Exception):
    """Every attempt failed, or the last failure was not retryable."""

    def __init__(self, last_error: BaseException, attempts: int):
        super().__init__(str(last_error))
        self.last_error = last_error
        self.attempts = attempts

    @property
    def retries(self) -> int:
        return self.attempts - 1


def is_retryable(error: BaseException) -> bool:
    return getattr(error, "retryable", True)


async def run_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    on_retry: Optional[Callable[[int, BaseException], Awaitable[Any]]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Tuple[T, int]:
    """
    Run fn until it succeeds or the policy gives up.

    Each attempt is bounded by policy.timeout. Before every retry,
    on_retry(retry_number, error) is awaited and then the backoff delay
    is slept.

    Returns:
        (value, number of retries it took)

    Raises:
        RetriesExhausted: wrapping the last error
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            if policy.timeout:
                value = await asyncio.wait_for(fn(), timeout=policy.timeout)
            else:
                value = await fn()
            return value, attempt - 1
        except asyncio.TimeoutError:
            error: BaseException = ProviderError(
                f"Attempt timed out after {policy.timeout:g}s", retryable=True
            )
        except Exception as e:
            error = e

        if attempt >= policy.max_attempts or not is_retryable(error):
            raise RetriesExhausted(error, attempt) from error

        if on_retry is not None:
            await on_retry(attempt, error)
        await sleep(policy.delay_for(attempt))
