import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from resume_advisor.core.exceptions import LLMError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Result of running an operation under a retry policy."""

    value: T | None = None
    error: LLMError | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff: the delay doubles after every failed attempt."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return self.initial_delay * self.multiplier ** (attempt - 1)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> RetryOutcome[T]:
        attempts = max(1, self.max_attempts)
        last_error: LLMError | None = None
        for attempt in range(1, attempts + 1):
            try:
                value = await operation()
                return RetryOutcome(value=value, attempts=attempt)
            except LLMError as e:
                last_error = e
                if attempt < attempts:
                    delay = self.delay_for(attempt)
                    logger.warning(
                        "Attempt %d/%d failed (%s), retrying in %.1fs",
                        attempt,
                        attempts,
                        e,
                        delay,
                    )
                    await self.sleep(delay)
        return RetryOutcome(error=last_error, attempts=attempts)
