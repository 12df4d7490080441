"""
Factory functions that assemble a ready-to-use platform connection.
"""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Optional

import httpx

from healthvault.clients.browser_auth import BrowserAuthBroker
from healthvault.clients.secret_store import SQLiteSecretStore
from healthvault.clients.web_request import HealthWebRequestClient
from healthvault.core.config import HealthVaultSettings, get_settings
from healthvault.services.cryptographer import Cryptographer
from healthvault.services.local_object_store import LocalObjectStore
from healthvault.services.secret_cipher import SecretCipher
from healthvault.services.shell_auth import ShellAuthService
from healthvault.services.soda_connection import HealthVaultSodaConnection
from healthvault.utils.http import RetryConfig

logger = logging.getLogger(__name__)


class HealthVaultConnectionFactory:
    """Build and cache the single self-provisioned connection for this process."""

    def __init__(
        self,
        settings: HealthVaultSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        local_object_store: LocalObjectStore | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._local_object_store = local_object_store
        self._soda_connection: Optional[HealthVaultSodaConnection] = None
        self._lock = asyncio.Lock()

    async def get_or_create_soda_connection(
        self, broker: BrowserAuthBroker
    ) -> HealthVaultSodaConnection:
        """Return the cached connection, creating it on first use.

        Later calls ignore ``broker`` and hand back the same connection.
        """
        async with self._lock:
            if self._soda_connection is None:
                self._soda_connection = self._build_soda_connection(broker)
                logger.debug("Created self-provisioned connection")
            return self._soda_connection

    def create_local_object_store(self) -> LocalObjectStore:
        if self._local_object_store is not None:
            return self._local_object_store
        secret = self._settings.security.store_encryption_secret
        cipher = SecretCipher(secret=secret) if secret else None
        if cipher is None:
            logger.warning("Cached credentials will be stored unencrypted")
        return LocalObjectStore(SQLiteSecretStore(self._settings.store_path), cipher)

    def _build_soda_connection(self, broker: BrowserAuthBroker) -> HealthVaultSodaConnection:
        settings = self._settings
        return HealthVaultSodaConnection(
            settings,
            local_object_store=self.create_local_object_store(),
            shell_auth_service=ShellAuthService(
                broker,
                is_multi_record_app=settings.is_multi_record_app,
                multi_instance_aware=settings.multi_instance_aware,
            ),
            web_request_client=HealthWebRequestClient(
                timeout=settings.request_timeout,
                retry_config=RetryConfig.from_settings(settings.retry),
                transport=self._transport,
            ),
            cryptographer=Cryptographer(
                hmac_algorithm=settings.hmac_algorithm,
                hash_algorithm=settings.hash_algorithm,
            ),
        )


@lru_cache()
def get_connection_factory() -> HealthVaultConnectionFactory:
    """Provide the process-wide connection factory."""
    return HealthVaultConnectionFactory(get_settings())


__all__ = ["HealthVaultConnectionFactory", "get_connection_factory"]
