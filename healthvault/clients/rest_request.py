"""
Legacy signed REST request.

Older JSON endpoints authenticate a request with two extra headers on top of
``MSH-V1`` authorization: ``x-msh-sha256`` carries the body hash and
``x-msh-hmac`` carries an HMAC over the request line, keyed by the session
shared secret.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from http import HTTPStatus
from typing import TYPE_CHECKING, Dict, Mapping, Optional
from uuid import UUID

import httpx

from healthvault.clients.rest import (
    AUTHORIZATION_HEADER,
    CORRELATION_ID_HEADER,
    JSON_CONTENT_TYPE,
    build_msh_v1_header,
)
from healthvault.core.config import SDK_USER_AGENT
from healthvault.core.exceptions import HealthHttpError, InvalidStateError
from healthvault.utils.http import RetryConfig, request_with_retry
from healthvault.utils.xml import universal_sortable

if TYPE_CHECKING:
    from healthvault.services.connection import HealthVaultConnectionBase

logger = logging.getLogger(__name__)

SHA256_HEADER = "x-msh-sha256"
HMAC_HEADER = "x-msh-hmac"
HMAC_SCHEME = "V1-HMACSHA256"
CONTENT_VERBS = frozenset({"POST", "PUT", "PATCH"})


def content_sha256(body: str) -> str:
    return base64.b64encode(hashlib.sha256(body.encode("utf-8")).digest()).decode("ascii")


def build_signature_string(
    verb: str,
    path: str,
    auth_header: str,
    content_hash: str,
    content_type: str,
    signed_at: datetime,
) -> str:
    """The string covered by ``x-msh-hmac``."""
    return "&".join(
        [verb, path, auth_header, content_hash, content_type, universal_sortable(signed_at)]
    )


@dataclass(slots=True)
class HealthServiceRestResponseData:
    status_code: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)


class HealthServiceRestRequest:
    """One signed call against a legacy JSON endpoint."""

    def __init__(
        self,
        connection: "HealthVaultConnectionBase",
        verb: str,
        path: str,
        *,
        query: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
        api_root: Optional[str] = None,
        record_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._connection = connection
        self.verb = verb.upper()
        self.is_content_request = self.verb in CONTENT_VERBS
        root = api_root or connection.settings.rest_healthvault_url
        self.url = httpx.URL(root).join(path.lstrip("/"))
        if query:
            self.url = self.url.copy_merge_params(dict(query))
        self.body = (body or "") if self.is_content_request else None
        self.record_id = record_id
        self.correlation_id = correlation_id
        self.timeout = connection.settings.request_timeout
        self._transport = transport
        self._retry = RetryConfig.from_settings(connection.settings.retry)

    async def execute(self) -> HealthServiceRestResponseData:
        response = await self._fetch()
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            logger.info("REST request rejected with 401; refreshing session and resending")
            await self._connection.refresh_session()
            response = await self._fetch()

        if not response.is_success:
            raise HealthHttpError(response.status_code, response.text)

        return HealthServiceRestResponseData(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    def build_headers(self, now: datetime | None = None) -> Dict[str, str]:
        credential = self._connection.session_credential
        if credential is None:
            raise InvalidStateError("No session credential; call authenticate first.")

        signed_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        auth_header = build_msh_v1_header(
            self._connection.get_rest_auth_session_header(), self.record_id
        )
        headers: Dict[str, str] = {AUTHORIZATION_HEADER: auth_header}

        content_hash = ""
        content_type = ""
        if self.is_content_request:
            content_hash = content_sha256(self.body or "")
            content_type = JSON_CONTENT_TYPE
            headers["Content-Type"] = JSON_CONTENT_TYPE
            headers[SHA256_HEADER] = content_hash

        headers["Date"] = format_datetime(signed_at, usegmt=True)
        headers["User-Agent"] = SDK_USER_AGENT
        if self.correlation_id is not None:
            headers[CORRELATION_ID_HEADER] = str(self.correlation_id)

        signature = build_signature_string(
            self.verb,
            self.url.raw_path.decode("ascii"),
            auth_header,
            content_hash,
            content_type,
            signed_at,
        )
        hmac_data = self._connection.cryptographer.compute_hmac_with_secret(
            credential.shared_secret, signature.encode("utf-8")
        )
        headers[HMAC_HEADER] = f"{HMAC_SCHEME} {hmac_data.value}"
        return headers

    async def _fetch(self) -> httpx.Response:
        await self._connection.ensure_session_credential()
        headers = self.build_headers()
        headers.setdefault("Accept-Encoding", "gzip, deflate")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await request_with_retry(
                client.request,
                self.verb,
                self.url,
                content=self.body,
                headers=headers,
                retry_config=self._retry,
            )
        logger.debug("%s %s -> %s", self.verb, self.url, response.status_code)
        return response


__all__ = [
    "HMAC_HEADER",
    "HealthServiceRestRequest",
    "HealthServiceRestResponseData",
    "SHA256_HEADER",
    "build_signature_string",
    "content_sha256",
]
