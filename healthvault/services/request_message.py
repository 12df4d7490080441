"""
Build signed XML request envelopes for platform method calls.

An envelope has three sections::

    <wc-request:request xmlns:wc-request="urn:com.microsoft.wc.request">
        <auth>...</auth>      (authenticated calls only)
        <header>...</header>
        <info>...</info>
    </wc-request:request>

Authenticated calls identify themselves with an ``<auth-session>`` block,
hash the info section into ``<info-hash>`` and sign the header bytes with the
session shared secret. Anonymous calls carry an ``<app-id>`` instead and are
neither hashed nor signed.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from healthvault.core.config import SDK_USER_AGENT, HealthVaultSettings
from healthvault.core.exceptions import InvalidStateError
from healthvault.schemas.request import RequestHeader
from healthvault.services.cryptographer import Cryptographer
from healthvault.utils.xml import to_xml, xml_from_now

if TYPE_CHECKING:
    from healthvault.services.connection import HealthVaultConnectionBase

REQUEST_NAMESPACE = "urn:com.microsoft.wc.request"


class HealthVaultMethods(str, Enum):
    """Platform XML methods used by the SDK."""

    NEW_APPLICATION_CREATION_INFO = "NewApplicationCreationInfo"
    GET_SERVICE_DEFINITION = "GetServiceDefinition"
    CREATE_AUTHENTICATED_SESSION_TOKEN = "CreateAuthenticatedSessionToken"
    GET_AUTHORIZED_PEOPLE = "GetAuthorizedPeople"
    REMOVE_APPLICATION_RECORD_AUTHORIZATION = "RemoveApplicationRecordAuthorization"

    @property
    def is_anonymous(self) -> bool:
        return self in _ANONYMOUS_METHODS


_ANONYMOUS_METHODS = frozenset(
    {
        HealthVaultMethods.NEW_APPLICATION_CREATION_INFO,
        HealthVaultMethods.GET_SERVICE_DEFINITION,
        HealthVaultMethods.CREATE_AUTHENTICATED_SESSION_TOKEN,
    }
)


class RequestMessageCreator:
    """Serialize method calls for a connection."""

    def __init__(
        self,
        connection: "HealthVaultConnectionBase",
        settings: HealthVaultSettings,
        cryptographer: Cryptographer,
    ) -> None:
        self._connection = connection
        self._settings = settings
        self._crypto = cryptographer

    def create(
        self,
        method: HealthVaultMethods,
        method_version: int,
        *,
        parameters: Optional[str] = None,
        record_id: Optional[UUID] = None,
    ) -> str:
        info_xml = f"<info>{parameters or ''}</info>"
        header = self.build_header(
            method,
            method_version,
            record_id=record_id,
            info_bytes=info_xml.encode("utf-8"),
        )
        header_xml = to_xml(header.to_element())

        auth_xml = ""
        if header.auth_session is not None:
            credential = self._connection.session_credential
            signature = self._crypto.compute_hmac_with_secret(
                credential.shared_secret, header_xml.encode("utf-8")
            )
            auth_xml = f"<auth>{to_xml(signature.to_element())}</auth>"

        return (
            f'<wc-request:request xmlns:wc-request="{REQUEST_NAMESPACE}">'
            f"{auth_xml}{header_xml}{info_xml}"
            "</wc-request:request>"
        )

    def build_header(
        self,
        method: HealthVaultMethods,
        method_version: int,
        *,
        record_id: Optional[UUID] = None,
        info_bytes: bytes = b"<info></info>",
    ) -> RequestHeader:
        fields = {
            "method": method.value,
            "method_version": method_version,
            "record_id": record_id,
            "culture_code": self._settings.culture_code,
            "msg_time": xml_from_now(),
            "msg_ttl": self._settings.request_time_to_live_seconds,
            "version": SDK_USER_AGENT,
        }

        if method.is_anonymous:
            return RequestHeader(app_id=self._anonymous_app_id(method), **fields)

        credential = self._connection.session_credential
        if credential is None or not credential.token:
            raise InvalidStateError(
                f"{method.value} requires a session credential; call authenticate first."
            )
        return RequestHeader(
            auth_session=self._connection.prepare_auth_header(record_id),
            info_hash=self._crypto.compute_hash(info_bytes),
            **fields,
        )

    def _anonymous_app_id(self, method: HealthVaultMethods) -> UUID:
        if method is HealthVaultMethods.CREATE_AUTHENTICATED_SESSION_TOKEN:
            app_id = self._connection.application_id
            if app_id is None:
                raise InvalidStateError("The application has not been provisioned.")
            return app_id
        return self._settings.master_application_id


__all__ = ["HealthVaultMethods", "REQUEST_NAMESPACE", "RequestMessageCreator"]
