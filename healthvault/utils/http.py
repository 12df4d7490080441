"""HTTP utilities providing the platform's retry-on-500 semantics."""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Awaitable, Callable

import httpx

from healthvault.core.config import RetrySettings

logger = logging.getLogger(__name__)


class RetryConfig:
    def __init__(self, *, retries: int = 2, sleep_seconds: float = 1.0) -> None:
        self.retries = retries
        self.sleep_seconds = sleep_seconds

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryConfig":
        return cls(
            retries=settings.retry_on_500_count,
            sleep_seconds=settings.retry_on_500_sleep_seconds,
        )

    @property
    def attempts(self) -> int:
        return self.retries + 1


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> httpx.Response:
    """Invoke ``func`` and re-invoke it while the platform answers HTTP 500.

    Returns the last response; mapping non-success statuses to errors is left to
    the caller. Transport errors and timeouts propagate immediately.
    """
    config = retry_config or RetryConfig()
    attempt = 0

    while True:
        response = await func(*args, **kwargs)
        attempt += 1
        if response.status_code != HTTPStatus.INTERNAL_SERVER_ERROR:
            return response
        if attempt >= config.attempts:
            logger.warning("Giving up after %d attempts answered with HTTP 500", attempt)
            return response
        logger.warning(
            "Platform answered HTTP 500 (attempt %d of %d); retrying in %.1fs",
            attempt,
            config.attempts,
            config.sleep_seconds,
        )
        await asyncio.sleep(config.sleep_seconds)


__all__ = ["RetryConfig", "request_with_retry"]
