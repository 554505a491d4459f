"""Exponential backoff with jitter for remote collaborators."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from vectordatastore.config import RetrySettings
from vectordatastore.exceptions import VectorDataStoreError
from vectordatastore.logging_config import get_logger
from vectordatastore.observability.metrics import track_retry_attempt

logger = get_logger(__name__)

T = TypeVar("T")

# Timeout, rate limit and server-side failures
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

# Jitter is a fraction of the base delay added on top of each backoff
JITTER_RATIO = 0.2


def is_retryable(error: BaseException) -> bool:
    """Decide whether a failed call may be attempted again.

    Only transient conditions qualify: transport timeouts, connection
    failures, the whitelisted HTTP status codes, and package errors
    flagged as rate-limited or transient.
    """
    if isinstance(error, VectorDataStoreError):
        return error.retryable
    if isinstance(error, httpx.TimeoutException | httpx.NetworkError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES
    return False


class RetryPolicy:
    """Retries a single logical operation with exponential backoff.

    No retry state is shared between calls to ``execute``.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the retry policy.

        Args:
            max_attempts: Total attempts including the first call.
            base_delay: Delay before the first retry, doubled each time.
            max_delay: Upper bound for any single delay.
            sleep: Coroutine used to wait between attempts.
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryPolicy":
        """Build a policy from retry settings."""
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
        )

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str = "operation",
    ) -> T:
        """Run ``operation``, retrying transient failures.

        Args:
            operation: Zero-argument coroutine function to run.
            name: Operation label used in logs and metrics.

        Returns:
            The operation's result.

        Raises:
            Exception: The last error when retries are exhausted, or the
                first non-retryable error, unchanged.
        """

        def _before_sleep(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            track_retry_attempt(name)
            logger.warning(
                f"Retrying {name} after failure: {error}",
                extra={
                    "operation": name,
                    "attempt": state.attempt_number,
                    "max_attempts": self.max_attempts,
                },
            )

        retrying = AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.base_delay,
                max=self.max_delay,
                jitter=self.base_delay * JITTER_RATIO,
            ),
            sleep=self._sleep,
            before_sleep=_before_sleep,
            reraise=True,
        )

        # tenacity only awaits callables it recognises as coroutine functions
        async def _attempt() -> T:
            return await operation()

        return await retrying(_attempt)
