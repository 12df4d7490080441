"""
Base connection: executes XML platform methods and owns the session credential.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Optional
from uuid import UUID

import httpx

from healthvault.clients.person import PersonClient
from healthvault.clients.platform import PlatformClient
from healthvault.clients.web_request import (
    CORRELATION_ID_HEADER,
    RESPONSE_ID_HEADER,
    HealthWebRequestClient,
)
from healthvault.core.config import HealthVaultSettings
from healthvault.core.exceptions import HealthServiceError, InvalidStateError
from healthvault.models.credentials import SessionCredential
from healthvault.models.person import PersonInfo
from healthvault.models.platform import ServiceInstance
from healthvault.schemas.auth import AuthSession
from healthvault.schemas.request import HealthServiceResponseData
from healthvault.services.cryptographer import Cryptographer
from healthvault.services.request_message import HealthVaultMethods, RequestMessageCreator
from healthvault.services.response_parser import HealthServiceResponseParser
from healthvault.services.session_credentials import SessionCredentialClient

if TYPE_CHECKING:
    from healthvault.clients.rest import HealthVaultRestClient

logger = logging.getLogger(__name__)

SessionCredentialClientFactory = Callable[[], SessionCredentialClient]


class HealthVaultConnectionBase(ABC):
    """Shared request pipeline for every kind of platform connection."""

    SESSION_REFRESH_THRESHOLD = timedelta(minutes=5)

    def __init__(
        self,
        settings: HealthVaultSettings,
        *,
        web_request_client: HealthWebRequestClient,
        cryptographer: Cryptographer,
        session_credential_client_factory: SessionCredentialClientFactory | None = None,
        response_parser: HealthServiceResponseParser | None = None,
    ) -> None:
        self.settings = settings
        self.cryptographer = cryptographer
        self.service_instance: Optional[ServiceInstance] = None
        self.session_credential: Optional[SessionCredential] = None
        self._web_request = web_request_client
        self._parser = response_parser or HealthServiceResponseParser()
        self._credential_client_factory = session_credential_client_factory or (
            lambda: SessionCredentialClient(
                cryptographer=cryptographer,
                default_lifetime=timedelta(seconds=settings.session_credential_lifetime_seconds),
            )
        )
        self._messages = RequestMessageCreator(self, settings, cryptographer)
        self._session_lock = asyncio.Lock()
        self._last_session_refresh: Optional[datetime] = None

    @property
    @abstractmethod
    def application_id(self) -> Optional[UUID]:
        """Identifier the platform knows this application instance by."""

    @property
    def user_auth_token(self) -> Optional[str]:
        """User token added to REST authorization headers, if the connection has one."""
        return None

    @abstractmethod
    async def authenticate(self) -> None:
        ...

    @abstractmethod
    async def get_person_info(self) -> Optional[PersonInfo]:
        ...

    @abstractmethod
    def prepare_auth_header(self, record_id: Optional[UUID] = None) -> AuthSession:
        ...

    @abstractmethod
    def create_session_credential_client(self) -> SessionCredentialClient:
        ...

    def create_platform_client(self) -> PlatformClient:
        return PlatformClient(self)

    def create_person_client(self) -> PersonClient:
        return PersonClient(self)

    def create_rest_client(
        self, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "HealthVaultRestClient":
        from healthvault.clients.rest import HealthVaultRestClient

        return HealthVaultRestClient(self.settings, self, transport=transport)

    def get_rest_auth_session_header(self) -> str:
        """Token portion of an ``MSH-V1`` authorization header."""
        if self.session_credential is None:
            raise InvalidStateError("No session credential; call authenticate first.")
        parts = [f"app-token={self.session_credential.token}"]
        if self.user_auth_token:
            parts.append(f"user-token={self.user_auth_token}")
        return ",".join(parts)

    async def execute(
        self,
        method: HealthVaultMethods,
        method_version: int,
        parameters: Optional[str] = None,
        record_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> HealthServiceResponseData:
        is_anonymous = method.is_anonymous
        if not is_anonymous:
            await self.ensure_session_credential()

        request_xml = self._messages.create(
            method, method_version, parameters=parameters, record_id=record_id
        )
        try:
            return await self._send(request_xml, correlation_id)
        except HealthServiceError as exc:
            if is_anonymous or not exc.is_session_expired:
                raise
            logger.info("Session token expired during %s; refreshing", method.value)

        await self.refresh_session()
        # Rebuild so the message picks up the new credential.
        request_xml = self._messages.create(
            method, method_version, parameters=parameters, record_id=record_id
        )
        return await self._send(request_xml, correlation_id)

    async def ensure_session_credential(self) -> None:
        """Authenticate or refresh so the next request is signed with a live credential."""
        if not (self.session_credential and self.session_credential.token):
            await self.authenticate()
        if self.session_credential is not None and self.session_credential.is_expired():
            logger.info("Session credential expired; refreshing before signing")
            await self.refresh_session()

    async def refresh_session(self) -> None:
        """Refresh the session credential unless another caller just did.

        An expired credential is always replaced, even inside the throttle window.
        """
        async with self._session_lock:
            now = datetime.now(timezone.utc)
            credential = self.session_credential
            if (
                self._last_session_refresh is not None
                and now - self._last_session_refresh <= self.SESSION_REFRESH_THRESHOLD
                and credential is not None
                and not credential.is_expired(now)
            ):
                logger.debug("Session refreshed at %s; skipping", self._last_session_refresh)
                return
            await self._refresh_session_credential()
            self._last_session_refresh = datetime.now(timezone.utc)

    async def _refresh_session_credential(self) -> None:
        client = self.create_session_credential_client()
        self.session_credential = await client.get_session_credential()

    async def _send(
        self, request_xml: str, correlation_id: Optional[UUID] = None
    ) -> HealthServiceResponseData:
        if self.service_instance is None:
            raise InvalidStateError("No service instance selected for this connection.")
        logger.debug("Sending request to %s", self.service_instance.health_service_url)
        response = await self._web_request.send(
            self.service_instance.health_service_url,
            request_xml.encode("utf-8"),
            headers={CORRELATION_ID_HEADER: str(correlation_id or uuid.uuid4())},
        )
        return self._parser.parse(
            response.content, response_id=response.headers.get(RESPONSE_ID_HEADER)
        )


__all__ = ["HealthVaultConnectionBase", "SessionCredentialClientFactory"]
