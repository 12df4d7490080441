"""
Client for the platform's JSON (REST) API.

Every request is signed with an ``MSH-V1`` authorization header built from the
connection's session credential.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional
from urllib.parse import urljoin
from uuid import UUID

import httpx
from pydantic import BaseModel

from healthvault.core.config import HealthVaultSettings
from healthvault.core.exceptions import HealthHttpError
from healthvault.schemas.request import RestRequest
from healthvault.utils.http import RetryConfig, request_with_retry

if TYPE_CHECKING:
    from healthvault.services.connection import HealthVaultConnectionBase

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
MSH_V1_SCHEME = "MSH-V1"
VERSION_HEADER = "api-version"
CORRELATION_ID_HEADER = "CorrelationId"
JSON_CONTENT_TYPE = "application/json"


def build_msh_v1_header(auth_session_header: str, record_id: Optional[UUID | str] = None) -> str:
    """Assemble ``MSH-V1 app-token=..[,user-token=..][,record-id=..]``."""
    parts = [auth_session_header]
    if record_id:
        parts.append(f"record-id={record_id}")
    return f"{MSH_V1_SCHEME} {','.join(parts)}"


def _serialize_body(body: Any) -> str:
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True, exclude_none=True)
    return json.dumps(body, default=str)


def _error_message(response: httpx.Response) -> Optional[str]:
    """Pull ``error.message`` out of a JSON error body, if there is one."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return None


class HealthVaultRestClient:
    """Dispatch typed REST requests and map failures to ``HealthHttpError``."""

    def __init__(
        self,
        settings: HealthVaultSettings,
        connection: "HealthVaultConnectionBase",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._connection = connection
        self._transport = transport
        self._retry = RetryConfig.from_settings(settings.retry)

    async def authorize_rest_request(
        self, headers: Dict[str, str], record_id: Optional[UUID] = None
    ) -> None:
        """Set the ``Authorization`` header, refreshing an expired session first."""
        connection = self._connection
        await connection.ensure_session_credential()

        headers[AUTHORIZATION_HEADER] = build_msh_v1_header(
            connection.get_rest_auth_session_header(), record_id
        )

    def resolve_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return urljoin(self._settings.rest_healthvault_url, path.lstrip("/"))

    async def execute(self, request: RestRequest) -> Any:
        url = self.resolve_url(request.path)
        headers: Dict[str, str] = {
            "Accept-Encoding": "gzip, deflate",
            "Accept": JSON_CONTENT_TYPE,
            VERSION_HEADER: self._settings.rest_api_version,
        }
        if request.correlation_id is not None:
            headers[CORRELATION_ID_HEADER] = str(request.correlation_id)

        content: Optional[str] = None
        if request.body is not None:
            content = _serialize_body(request.body)
            headers["Content-Type"] = JSON_CONTENT_TYPE

        await self.authorize_rest_request(headers, request.record_id)

        async with httpx.AsyncClient(
            timeout=self._settings.request_timeout, transport=self._transport
        ) as client:
            response = await request_with_retry(
                client.request,
                request.method.upper(),
                url,
                params=request.query or None,
                content=content,
                headers=headers,
                retry_config=self._retry,
            )

        logger.debug("%s %s -> %s", request.method.upper(), url, response.status_code)
        if not response.is_success:
            message = _error_message(response)
            if message is None:
                message = f"The platform returned HTTP {response.status_code} ({response.reason_phrase})."
            raise HealthHttpError(response.status_code, message)

        if not response.content:
            return None
        return response.json()


__all__ = ["HealthVaultRestClient", "build_msh_v1_header"]
