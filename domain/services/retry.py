"""Bounded exponential-backoff retry for fallible async calls.

The executor knows nothing about what it is retrying. An error is retried only
when it carries a truthy ``retryable`` attribute (``TransportError`` does by
default); everything else propagates on the first attempt. When the attempt
budget is spent the last error is re-raised as-is.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from domain.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
OnRetry = Callable[[int, BaseException], None]


def is_retryable(exc: BaseException) -> bool:
    return bool(getattr(exc, "retryable", False))


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay slept before ``attempt`` (1-based); attempt 2 waits ``base_delay``."""
    if attempt < 2:
        return 0.0
    return base_delay * (2 ** (attempt - 2))


class RetryExecutor:
    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        *,
        sleep: Optional[Sleep] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        *,
        on_retry: Optional[OnRetry] = None,
        label: str = "operation",
    ) -> T:
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        delay_base = self.base_delay if base_delay is None else base_delay

        for attempt in range(1, attempts + 1):
            if attempt > 1:
                await self._sleep(backoff_delay(attempt, delay_base))
            try:
                return await operation()
            except Exception as exc:
                if not is_retryable(exc):
                    raise
                if attempt == attempts:
                    logger.error("%s failed after %d attempts: %s", label, attempts, exc)
                    raise
                logger.warning(
                    "%s attempt %d/%d failed (%s), retrying in %.2fs",
                    label,
                    attempt,
                    attempts,
                    exc,
                    backoff_delay(attempt + 1, delay_base),
                )
                if on_retry is not None:
                    on_retry(attempt + 1, exc)
        raise RuntimeError("Unexpected retry exhaustion")


async def with_timeout(awaitable: Awaitable[T], seconds: float, what: str = "remote call") -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise TransportError(f"{what} timed out after {seconds:g}s") from exc
