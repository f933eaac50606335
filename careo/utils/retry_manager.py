# careo/utils/retry_manager.py
"""
Retry Manager for bounded repository retries.

Provides a standardized bounded-attempt retry loop with a per-attempt delay
schedule, shared by the order query and the per-record inserts of the intake
generation job.
"""

import asyncio
from typing import Awaitable, Callable, List, Tuple, Type, TypeVar

from ..enums import LogEmoji, LoggerName, LogSource
from ..exceptions import RetryExhaustedError
from ..services.logger import get_service_logger

logger = get_service_logger(LoggerName.INTAKE_GENERATION, LogSource.WORKER)

T = TypeVar("T")


class RetryManager:
    """
    Manages bounded retry attempts with a delay schedule.

    Features:
    - Configurable maximum attempts (the first try counts as attempt 1)
    - Delay schedule in seconds, the last delay repeating when exhausted
    - Fatal exception types that are never retried
    - Injectable sleep so tests do not wait on real delays
    """

    def __init__(
        self,
        max_attempts: int,
        retry_delays: List[float],
        name: str = "Worker",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize retry manager.

        Args:
            max_attempts: Total attempts before an operation is given up on
            retry_delays: Seconds to wait before each retry (e.g., [1, 2, 5])
            name: Name used to prefix log lines
            sleep: Coroutine used to wait between attempts
        """
        if max_attempts <= 0:
            raise ValueError("max_attempts must be greater than 0")
        if not retry_delays:
            raise ValueError("retry_delays cannot be empty")
        if any(delay < 0 for delay in retry_delays):
            raise ValueError("Retry delays must not be negative")

        self.max_attempts = max_attempts
        self.retry_delays = list(retry_delays)
        self.name = name
        self._sleep = sleep

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after `attempt` failed (1-based)."""
        return attempt < self.max_attempts

    def get_retry_delay(self, attempt: int) -> float:
        """
        Seconds to wait after failed attempt number `attempt` (1-based).

        Uses the last delay if attempt exceeds the configured delays.
        """
        index = min(max(attempt - 1, 0), len(self.retry_delays) - 1)
        return self.retry_delays[index]

    def log_retry_scheduled(self, description: str, attempt: int, error: Exception) -> None:
        logger.warning(
            f"[{self.name}] {description} failed (attempt {attempt}/{self.max_attempts}), "
            f"retrying in {self.get_retry_delay(attempt)}s: {error}",
            emoji=LogEmoji.RETRY,
        )

    async def run_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str,
        retryable: Tuple[Type[BaseException], ...] = (Exception,),
        fatal: Tuple[Type[BaseException], ...] = (),
    ) -> Tuple[T, int]:
        """
        Run an async operation until it succeeds or attempts run out.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            description: What is being attempted, for logs
            retryable: Exception types that trigger a retry
            fatal: Exception types re-raised immediately, even if retryable

        Returns:
            (result, attempts used)

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable error
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation(), attempt
            except fatal:
                raise
            except retryable as e:
                if not self.should_retry(attempt):
                    raise RetryExhaustedError(
                        f"{description} failed after {attempt} attempt(s): {e}",
                        attempts=attempt,
                        last_error=e,
                    ) from e
                self.log_retry_scheduled(description, attempt, e)
                await self._sleep(self.get_retry_delay(attempt))

    def get_stats(self) -> dict:
        """
        Get retry manager configuration.

        Returns:
            Dictionary with retry manager configuration
        """
        return {
            "name": self.name,
            "max_attempts": self.max_attempts,
            "retry_delays": self.retry_delays,
            "max_total_delay_seconds": sum(
                self.get_retry_delay(attempt)
                for attempt in range(1, self.max_attempts)
            ),
        }

    def __repr__(self) -> str:
        """String representation of retry manager."""
        return (
            f"RetryManager(name='{self.name}', "
            f"max_attempts={self.max_attempts}, "
            f"delays={self.retry_delays})"
        )
