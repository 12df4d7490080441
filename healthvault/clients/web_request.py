"""
HTTP transport for XML platform method calls.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Dict, Optional

import httpx

from healthvault.core.exceptions import HealthHttpError
from healthvault.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "WC_CorrelationId"
RESPONSE_ID_HEADER = "WC_ResponseId"


class HealthWebRequestClient:
    """POST request envelopes to a platform endpoint and return the raw response."""

    def __init__(
        self,
        *,
        timeout: Optional[float] = 30.0,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._retry = retry_config or RetryConfig()
        self._transport = transport

    async def send(
        self,
        url: str,
        body: bytes,
        *,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        request_headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "Accept-Encoding": "gzip, deflate",
        }
        if headers:
            request_headers.update(headers)

        # A fresh client per call: a timed-out client is torn down with its pool.
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await request_with_retry(
                client.post,
                url,
                content=body,
                headers=request_headers,
                retry_config=self._retry,
            )

        response_id = response.headers.get(RESPONSE_ID_HEADER)
        logger.debug(
            "POST %s -> %s (response id %s)", url, response.status_code, response_id
        )
        if response.status_code != HTTPStatus.OK:
            raise HealthHttpError(response.status_code, response.text or None)
        return response


__all__ = ["CORRELATION_ID_HEADER", "HealthWebRequestClient", "RESPONSE_ID_HEADER"]
