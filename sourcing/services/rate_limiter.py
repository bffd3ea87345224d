"""
Rate-Limited Executor - Wrap any external-API call with shared cooldown + retry.

Behavior:
- Success: return the operation's result
- Rate limit: open (or join) the shared cooldown window, then retry, forever
- Anything else: log with the operation name and key, return None

The cooldown is a monotonic deadline shared by every caller of the same
limiter. The first caller to hit a rate limit opens a window; callers that
hit one while the window is open wait on the same deadline instead of
starting another timer.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import openai

from ..errors import RateLimitedError, SourcingError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_COOLDOWN_SECONDS = 60.0


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Detect quota / rate limit errors across the clients we use.

    Errors carrying an HTTP status are judged on the status alone; adapters
    raise RateLimitedError for provider-specific signals. Only errors with no
    status fall back to matching the message.
    """
    if isinstance(error, (RateLimitedError, openai.RateLimitError)):
        return True
    # Adapter errors echo identifiers (logins, URLs) back in their message
    if isinstance(error, SourcingError):
        return False

    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    response = getattr(error, "response", None)
    if status is None and response is not None:
        status = getattr(response, "status_code", None)
    if status is not None:
        return status == 429

    message = str(error).lower()
    return any(x in message for x in ["rate limit", "too many requests"])


class RateLimiter:
    """Shared cooldown window plus retry loop for external calls."""

    def __init__(
        self,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown_seconds = cooldown_seconds
        self._sleep = sleep
        self._clock = clock
        self._cooldown_until = 0.0
        self.cooldowns_started = 0

    async def wait(self) -> None:
        """Open a cooldown window if none is active, then wait for it to end."""
        now = self._clock()
        if now >= self._cooldown_until:
            self._cooldown_until = now + self.cooldown_seconds
            self.cooldowns_started += 1
            logger.warning(
                "[RateLimiter] Rate limit hit. Waiting %.0f seconds...", self.cooldown_seconds
            )

        remaining = self._cooldown_until - self._clock()
        if remaining > 0:
            await self._sleep(remaining)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str = "operation",
        key: Optional[str] = None,
    ) -> Optional[T]:
        """
        Run ``operation`` until it succeeds or fails with a non rate-limit error.

        Args:
            operation: Zero-arg callable returning a fresh awaitable per attempt
            name: Operation name for logs
            key: Identifier being processed (login, URL, record id) for logs

        Returns:
            The operation's result, or None if it failed for any other reason
        """
        while True:
            try:
                return await operation()
            except Exception as e:
                if is_rate_limit_error(e):
                    logger.info("[RateLimiter] %s(%s) rate limited: %s", name, key or "-", e)
                    await self.wait()
                    continue
                logger.error("[RateLimiter] %s(%s) failed: %s", name, key or "-", e)
                return None
