"""
Connection for client applications that provision themselves with the platform.

Provisioning, the session credential and the person profile are each read
from the local object store first and only fetched remotely when missing. A
per-connection lock makes sure concurrent callers trigger at most one
authentication sequence; late arrivals find the cached state.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional
from uuid import UUID

from healthvault.clients.web_request import HealthWebRequestClient
from healthvault.core.config import HealthVaultSettings
from healthvault.core.exceptions import (
    AuthenticationError,
    HealthHttpError,
    HealthServiceError,
    InvalidStateError,
)
from healthvault.models.credentials import ApplicationCreationInfo, SessionCredential
from healthvault.models.person import PersonInfo
from healthvault.models.platform import ServiceInstance
from healthvault.schemas.auth import AuthSession, OfflinePersonInfo
from healthvault.services.connection import (
    HealthVaultConnectionBase,
    SessionCredentialClientFactory,
)
from healthvault.services.cryptographer import Cryptographer
from healthvault.services.local_object_store import LocalObjectStore
from healthvault.services.response_parser import HealthServiceResponseParser
from healthvault.services.session_credentials import SessionCredentialClient
from healthvault.services.shell_auth import ShellAuthService

logger = logging.getLogger(__name__)

SERVICE_INSTANCE_KEY = "ServiceInstance"
APPLICATION_CREATION_INFO_KEY = "ApplicationCreationInfo"
SESSION_CREDENTIAL_KEY = "SessionCredential"
PERSON_INFO_KEY = "PersonInfo"

PLATFORM_ENDPOINT = "wildcat.ashx"


class ConnectionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PROVISIONING = "provisioning"
    ACQUIRING_SESSION_CREDENTIAL = "acquiring_session_credential"
    LOADING_PERSON = "loading_person"
    READY = "ready"


class HealthVaultSodaConnection(HealthVaultConnectionBase):
    """Self-provisioned ("SODA") connection with a read-through credential cache."""

    def __init__(
        self,
        settings: HealthVaultSettings,
        *,
        local_object_store: LocalObjectStore,
        shell_auth_service: ShellAuthService,
        web_request_client: HealthWebRequestClient,
        cryptographer: Cryptographer,
        session_credential_client_factory: SessionCredentialClientFactory | None = None,
        response_parser: HealthServiceResponseParser | None = None,
    ) -> None:
        super().__init__(
            settings,
            web_request_client=web_request_client,
            cryptographer=cryptographer,
            session_credential_client_factory=session_credential_client_factory,
            response_parser=response_parser,
        )
        self._store = local_object_store
        self._shell = shell_auth_service
        self._authenticate_lock = asyncio.Lock()
        self.application_creation_info: Optional[ApplicationCreationInfo] = None
        self.person_info: Optional[PersonInfo] = None
        self.state = ConnectionState.UNAUTHENTICATED

    @property
    def application_id(self) -> Optional[UUID]:
        if self.application_creation_info is None:
            return None
        return self.application_creation_info.app_instance_id

    async def authenticate(self) -> None:
        async with self._authenticate_lock:
            await self._read_properties_from_local_storage()

            try:
                if self.application_creation_info is None:
                    await self._provision_for_soda_auth()

                if self.session_credential is None or self.session_credential.is_expired():
                    self._set_state(ConnectionState.ACQUIRING_SESSION_CREDENTIAL)
                    await self._refresh_session_credential()

                if self.person_info is None:
                    self._set_state(ConnectionState.LOADING_PERSON)
                    await self._get_and_save_person_info()
            except HealthServiceError as exc:
                self._reset_state()
                raise AuthenticationError(
                    f"Authentication failed with platform status {exc.status_code}."
                ) from exc
            except BaseException:
                self._reset_state()
                raise

            self._set_state(ConnectionState.READY)

    async def authorize_additional_records(self) -> None:
        async with self._authenticate_lock:
            await self._read_properties_from_local_storage()

            if (
                self.session_credential is None
                or self.application_creation_info is None
                or self.service_instance is None
            ):
                raise InvalidStateError(
                    "Cannot authorize additional records; call authenticate first."
                )

            await self._shell.authorize_additional_records(
                self.service_instance.shell_url,
                self.settings.master_application_id,
            )
            await self._get_and_save_person_info()

    async def deauthorize_application(self) -> None:
        """Sign out: revoke record authorizations and forget every cached credential."""
        async with self._authenticate_lock:
            if (
                self.service_instance is not None
                and self.application_creation_info is not None
                and self.session_credential is not None
                and self.person_info is not None
            ):
                platform_client = self.create_platform_client()
                for record_id in self.person_info.authorized_record_ids:
                    try:
                        await platform_client.remove_application_record_authorization(record_id)
                    except (HealthServiceError, HealthHttpError) as exc:
                        logger.warning(
                            "Could not revoke authorization for record %s: %s", record_id, exc
                        )

            # Revocation may have refreshed and persisted the session credential.
            for key in (
                SERVICE_INSTANCE_KEY,
                APPLICATION_CREATION_INFO_KEY,
                SESSION_CREDENTIAL_KEY,
                PERSON_INFO_KEY,
            ):
                await self._store.delete(key)

            self.service_instance = None
            self.application_creation_info = None
            self.session_credential = None
            self.person_info = None
            self._last_session_refresh = None
            self._set_state(ConnectionState.UNAUTHENTICATED)
            logger.info("Application deauthorized")

    async def get_person_info(self) -> Optional[PersonInfo]:
        if self.person_info is None:
            await self.authenticate()
        return self.person_info

    def prepare_auth_header(self, record_id: Optional[UUID] = None) -> AuthSession:
        if self.session_credential is None:
            raise InvalidStateError("No session credential; call authenticate first.")
        auth_session = AuthSession(auth_token=self.session_credential.token)
        # Record-scoped calls act on behalf of the signed-in person.
        if record_id is not None and self.person_info is not None:
            auth_session.person = OfflinePersonInfo(offline_person_id=self.person_info.person_id)
        return auth_session

    def create_session_credential_client(self) -> SessionCredentialClient:
        if self.application_creation_info is None:
            raise InvalidStateError("The application has not been provisioned.")
        client = self._credential_client_factory()
        client.app_shared_secret = self.application_creation_info.shared_secret
        client.connection = self
        return client

    async def _refresh_session_credential(self) -> None:
        client = self.create_session_credential_client()
        credential = await client.get_session_credential()
        await self._store.write(SESSION_CREDENTIAL_KEY, credential)
        self.session_credential = credential

    async def _read_properties_from_local_storage(self) -> None:
        if self.service_instance is None:
            self.service_instance = await self._store.read(SERVICE_INSTANCE_KEY, ServiceInstance)
        if self.application_creation_info is None:
            self.application_creation_info = await self._store.read(
                APPLICATION_CREATION_INFO_KEY, ApplicationCreationInfo
            )
        if self.session_credential is None:
            self.session_credential = await self._store.read(
                SESSION_CREDENTIAL_KEY, SessionCredential
            )
        if self.person_info is None:
            self.person_info = await self._store.read(PERSON_INFO_KEY, PersonInfo)

    async def _provision_for_soda_auth(self) -> None:
        self._set_state(ConnectionState.PROVISIONING)
        shell_url = self.settings.default_healthvault_shell_url
        # Temporary instance for the anonymous provisioning calls.
        self.service_instance = ServiceInstance(
            id="1",
            name="Default",
            description="Default HealthVault instance",
            health_service_url=f"{self.settings.default_healthvault_url}{PLATFORM_ENDPOINT}",
            shell_url=shell_url,
        )

        platform_client = self.create_platform_client()
        creation_info = await platform_client.new_application_creation_info()

        environment_instance_id = await self._shell.provision_application(
            shell_url,
            self.settings.master_application_id,
            creation_info.app_creation_token,
            str(creation_info.app_instance_id),
        )

        service_info = await platform_client.get_service_definition(("topology",))
        instance = service_info.get_instance(environment_instance_id)
        if instance is None:
            raise AuthenticationError(
                f"The platform has no service instance {environment_instance_id!r}."
            )

        await self._store.write(SERVICE_INSTANCE_KEY, instance)
        self.service_instance = instance
        await self._store.write(APPLICATION_CREATION_INFO_KEY, creation_info)
        self.application_creation_info = creation_info

        # Sessions and people belong to the previous application instance.
        await self._store.delete(SESSION_CREDENTIAL_KEY)
        await self._store.delete(PERSON_INFO_KEY)
        self.session_credential = None
        self.person_info = None
        self._last_session_refresh = None
        logger.info(
            "Provisioned application instance %s on %s",
            creation_info.app_instance_id,
            instance.name,
        )

    async def _get_and_save_person_info(self) -> None:
        people = await self.create_person_client().get_authorized_people()
        if not people:
            raise AuthenticationError("No person has authorized this application.")
        person = people[0]
        await self._store.write(PERSON_INFO_KEY, person)
        self.person_info = person
        logger.info(
            "Loaded person %s with %d authorized records",
            person.person_id,
            len(person.authorized_records),
        )

    def _reset_state(self) -> None:
        # A failed provisioning leaves only the temporary default instance behind.
        if self.application_creation_info is None:
            self.service_instance = None
        self._set_state(ConnectionState.UNAUTHENTICATED)

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self.state:
            logger.debug("Connection state %s -> %s", self.state.value, state.value)
            self.state = state


__all__ = [
    "APPLICATION_CREATION_INFO_KEY",
    "ConnectionState",
    "HealthVaultSodaConnection",
    "PERSON_INFO_KEY",
    "SERVICE_INSTANCE_KEY",
    "SESSION_CREDENTIAL_KEY",
]
