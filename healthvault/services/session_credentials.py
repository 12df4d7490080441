"""
Exchange an application's shared secret for a short-lived session credential.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional
from xml.etree import ElementTree

from healthvault.core.exceptions import HealthServiceInvalidResponseError, InvalidStateError
from healthvault.models.credentials import SessionCredential
from healthvault.services.cryptographer import Cryptographer
from healthvault.services.request_message import HealthVaultMethods
from healthvault.utils.xml import find_text, parse_xml_datetime, to_xml, universal_sortable

if TYPE_CHECKING:
    from healthvault.services.connection import HealthVaultConnectionBase

logger = logging.getLogger(__name__)


class SessionCredentialClient:
    """Sign and send ``CreateAuthenticatedSessionToken`` for an application instance.

    The call is signed with the application's shared secret rather than a
    session secret, since no session exists yet.
    """

    def __init__(
        self,
        *,
        cryptographer: Cryptographer,
        default_lifetime: timedelta = timedelta(hours=4),
        connection: Optional["HealthVaultConnectionBase"] = None,
        app_shared_secret: Optional[str] = None,
    ) -> None:
        self._crypto = cryptographer
        self._default_lifetime = default_lifetime
        self.connection = connection
        self.app_shared_secret = app_shared_secret

    def build_content_xml(self, signing_time: datetime) -> str:
        content = ElementTree.Element("content")
        ElementTree.SubElement(content, "app-id").text = str(self._require_connection().application_id)
        ElementTree.SubElement(content, "hmac").text = self._crypto.hmac_algorithm
        ElementTree.SubElement(content, "signing-time").text = universal_sortable(signing_time)
        return to_xml(content)

    def build_credential_xml(self, signing_time: Optional[datetime] = None) -> str:
        """Return the ``<appserver2>`` element: the HMAC followed by the signed content."""
        if not self.app_shared_secret:
            raise InvalidStateError("An application shared secret is required to sign the session request.")
        content_xml = self.build_content_xml(signing_time or datetime.now(timezone.utc))
        signature = self._crypto.compute_hmac_with_secret(
            self.app_shared_secret, content_xml.encode("utf-8")
        )
        hmac_sig = ElementTree.Element("hmacSig")
        hmac_sig.set("algName", signature.algorithm)
        hmac_sig.text = signature.value
        return f"<appserver2>{to_xml(hmac_sig)}{content_xml}</appserver2>"

    def build_request_info(self, signing_time: Optional[datetime] = None) -> str:
        app_id = self._require_connection().application_id
        return (
            "<auth-info>"
            f"<app-id>{app_id}</app-id>"
            f"<credential>{self.build_credential_xml(signing_time)}</credential>"
            "</auth-info>"
        )

    async def get_session_credential(self) -> SessionCredential:
        connection = self._require_connection()
        requested_at = datetime.now(timezone.utc)
        response = await connection.execute(
            HealthVaultMethods.CREATE_AUTHENTICATED_SESSION_TOKEN,
            2,
            self.build_request_info(requested_at),
        )
        credential = self._parse_credential(response.info, requested_at)
        logger.info("Obtained session credential expiring at %s", credential.expiration_utc)
        return credential

    def _parse_credential(
        self, info: Optional[ElementTree.Element], requested_at: datetime
    ) -> SessionCredential:
        token = find_text(info, "token") if info is not None else None
        shared_secret = find_text(info, "shared-secret") if info is not None else None
        if not token or not shared_secret:
            raise HealthServiceInvalidResponseError(
                "Session credential response is missing the token or shared secret."
            )
        expires = find_text(info, "expires")
        expiration = (
            parse_xml_datetime(expires) if expires else requested_at + self._default_lifetime
        )
        return SessionCredential(token=token, shared_secret=shared_secret, expiration_utc=expiration)

    def _require_connection(self) -> "HealthVaultConnectionBase":
        if self.connection is None:
            raise InvalidStateError("The session credential client has no connection.")
        return self.connection


__all__ = ["SessionCredentialClient"]
