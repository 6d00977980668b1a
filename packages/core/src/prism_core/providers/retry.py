"""Bounded retry with exponential backoff, jitter and a per-attempt timeout.

This is the only place in prism_core that deals with time. Every provider's
chat() goes through with_retry(); list_models() does not.

Cancellation contract: a timed-out attempt is cancelled with asyncio task
cancellation (asyncio.wait_for). Provider operations must hold their HTTP
handles in ``async with`` blocks so the cancellation closes the in-flight
request instead of abandoning it. The next attempt always starts a fresh
operation.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from prism_core.errors import ConfigurationError, ProviderTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SENSITIVE_HEADER_RE = re.compile(r"auth|key|token|secret", re.IGNORECASE)

JITTER_MIN = 0.85
JITTER_MAX = 1.15


@dataclass(frozen=True)
class RetryOptions:
    max_retries: int = 3  # additional attempts after the first one
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0
    timeout: float = 120.0  # per attempt

    def backoff(self, attempt: int) -> float:
        """Delay before retry number attempt+1 (attempt counts from 0)."""
        jitter = random.uniform(JITTER_MIN, JITTER_MAX)
        return min(self.base_delay * 2**attempt * jitter, self.max_delay)


DEFAULT_RETRY_OPTIONS = RetryOptions()


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    options: RetryOptions = DEFAULT_RETRY_OPTIONS,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "provider",
) -> T:
    """Run *operation* until it succeeds or max_retries+1 attempts have failed.

    The last error is re-raised unchanged. ConfigurationError is raised
    immediately since retrying cannot fix it.
    """
    attempts = options.max_retries + 1
    attempt = 0

    while True:
        error: Exception
        try:
            return await asyncio.wait_for(operation(), timeout=options.timeout)
        except ConfigurationError:
            raise
        except asyncio.TimeoutError as e:
            error = ProviderTimeoutError(f"{label} request timed out after {options.timeout:g}s")
            error.__cause__ = e
        except Exception as e:
            error = e

        if attempt >= attempts - 1:
            logger.error("%s failed after %d attempts: %s", label, attempts, error)
            raise error
        delay = options.backoff(attempt)
        logger.warning(
            "%s error (attempt %d/%d): %s. Retrying in %.1fs...",
            label,
            attempt + 1,
            attempts,
            error,
            delay,
        )
        await sleep(delay)
        attempt += 1


def sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    """Copy of *headers* safe to log: credential-looking values are redacted."""
    return {k: "[REDACTED]" if _SENSITIVE_HEADER_RE.search(k) else v for k, v in headers.items()}
