"""Bounded exponential backoff for calls to transient-failure-prone services."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pdfquiz.logging.logger import Log
from pdfquiz.processor.errors import classify_error

T = TypeVar("T")


class RetryPolicy:
    """Retries an async operation while its failures classify as retryable.

    Attempt n (starting at 1) that fails with a retryable error is followed by a
    wait of backoff_base_seconds ** n. The last failure is re-raised unchanged.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_base_seconds: float = 2.0,
        attempt_timeout_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._backoff_base_seconds = backoff_base_seconds
        self._attempt_timeout_seconds = attempt_timeout_seconds
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self._backoff_base_seconds**attempt

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 1
        while True:
            try:
                if self._attempt_timeout_seconds is None:
                    return await operation()
                return await asyncio.wait_for(
                    operation(), timeout=self._attempt_timeout_seconds
                )
            except Exception as exc:
                error = classify_error(exc)
                if not error.retryable:
                    Log.warning(
                        f"Attempt {attempt} failed with non-retryable error: {error.message}",
                        kind=error.kind.value,
                    )
                    raise
                if attempt >= self._max_attempts:
                    Log.error(
                        f"Giving up after {attempt} attempts: {error.message}",
                        kind=error.kind.value,
                    )
                    raise
                delay = self.delay_for(attempt)
                Log.warning(
                    f"Attempt {attempt} failed: {error.message}; retrying in {delay:g}s",
                    kind=error.kind.value,
                )
                await self._sleep(delay)
                attempt += 1


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
) -> T:
    """Run operation under the default backoff policy."""
    return await RetryPolicy(max_attempts=max_attempts).run(operation)
