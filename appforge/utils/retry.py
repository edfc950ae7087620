"""Exponential backoff for step bodies."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NonRetryableError(Exception):
    """Base for failures that fail the same way on every attempt."""


class Backoff(BaseModel):
    """How often and how patiently a failing call is retried."""

    retries: int = Field(default=2, ge=0)
    base_delay: float = 1.0
    max_delay: float = 10.0

    @property
    def attempts(self) -> int:
        return self.retries + 1

    def delay(self, failed_attempt: int) -> float:
        """Delay before the attempt after ``failed_attempt`` (zero-based)."""
        return min(self.base_delay * (2**failed_attempt), self.max_delay)


async def retry_with_backoff(
    func: Callable[[], Awaitable[Any]],
    backoff: Backoff | None = None,
    label: str | None = None,
    no_retry: tuple[type[BaseException], ...] = (),
) -> Any:
    """Await ``func()`` until it succeeds or ``backoff.retries`` is used up.

    ``NonRetryableError`` and any exception in ``no_retry`` are raised on the
    first failure. The last exception is re-raised unchanged.
    """
    backoff = backoff or Backoff()
    label = label or getattr(func, "__name__", "call")

    failed = 0
    while True:
        try:
            return await func()
        except (NonRetryableError, *no_retry):
            raise
        except Exception as e:
            if failed >= backoff.retries:
                raise
            delay = backoff.delay(failed)
            failed += 1
            logger.debug("%s failed (%d/%d): %s; next try in %.1fs", label, failed, backoff.attempts, e, delay)
            await asyncio.sleep(delay)
