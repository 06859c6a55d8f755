"""
Retry Executor

Runs one already-bound attempt function with exponential backoff:

    delay(attempt) = min(base_delay * backoff_multiplier ** attempt, max_delay)

With the defaults the waits are 1s, 2s, 4s (four attempts in total). The
attempt function is bound to a single endpoint by the caller; the executor
never switches endpoints between attempts.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chainrpc.core.config.constants import (
    MAX_RETRIES,
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
    Stage,
)
from chainrpc.core.exceptions import NoHealthyEndpointsError, UnsupportedOperationError
from chainrpc.core.logging.logger import get_logger, log_stage

if TYPE_CHECKING:
    from chainrpc.core.config.settings import Settings

logger = get_logger(__name__)

T = TypeVar("T")

# Errors that no amount of retrying against the same endpoint can fix.
# Cancellation is listed because tenacity catches BaseException. ValueError
# and TypeError come from invalid caller input.
NON_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    asyncio.CancelledError,
    ValueError,
    TypeError,
    UnsupportedOperationError,
    NoHealthyEndpointsError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters for one queued request."""

    max_retries: int = MAX_RETRIES
    base_delay: float = RETRY_BASE_DELAY
    max_delay: float = RETRY_MAX_DELAY
    backoff_multiplier: float = RETRY_BACKOFF_MULTIPLIER

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Wait before retry number ``attempt + 1`` (attempt counts from 0)."""
        return min(self.base_delay * self.backoff_multiplier ** attempt, self.max_delay)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryPolicy":
        retry = settings.retry
        return cls(
            max_retries=retry.RETRY_MAX_RETRIES,
            base_delay=retry.RETRY_BASE_DELAY,
            max_delay=retry.RETRY_MAX_DELAY,
            backoff_multiplier=retry.RETRY_BACKOFF_MULTIPLIER,
        )


class RetryExecutor:
    """
    Tenacity-backed retry loop.

    Usage:
        executor = RetryExecutor(RetryPolicy(max_retries=3))
        result = await executor.execute(lambda: transport.get_block_number())

    Args:
        policy: Backoff parameters
        sleep: Awaitable sleep used between attempts (injectable for tests)
        non_retryable: Exception types re-raised immediately
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        non_retryable: tuple[type[BaseException], ...] = NON_RETRYABLE_ERRORS,
    ):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._non_retryable = non_retryable

    def _retrying(self, label: str | None) -> AsyncRetrying:
        policy = self.policy

        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            log_stage(
                logger,
                Stage.RETRY,
                "Attempt failed, backing off",
                level="warning",
                operation=label,
                attempt=retry_state.attempt_number,
                max_attempts=policy.max_attempts,
                delay=retry_state.next_action.sleep if retry_state.next_action else None,
                error=str(error),
                error_type=type(error).__name__,
            )

        return AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_exponential(
                multiplier=policy.base_delay,
                exp_base=policy.backoff_multiplier,
                max=policy.max_delay,
            ),
            retry=retry_if_not_exception_type(self._non_retryable),
            before_sleep=before_sleep,
            reraise=True,
        )

    async def execute(self, attempt: Callable[[], Awaitable[T]], label: str | None = None) -> T:
        """
        Run ``attempt`` until it succeeds or the policy is exhausted.

        Raises:
            The last attempt's exception, unchanged
        """
        async for retry_attempt in self._retrying(label):
            with retry_attempt:
                return await attempt()
        raise AssertionError("unreachable: tenacity reraises the last error")
