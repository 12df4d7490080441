"""
Async object store that persists pydantic models as (optionally encrypted) JSON.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from healthvault.clients.secret_store import SQLiteSecretStore
from healthvault.services.secret_cipher import SecretCipher

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class LocalObjectStore:
    """Read-through cache backing for provisioning, session and person data."""

    def __init__(
        self,
        secret_store: SQLiteSecretStore,
        cipher: SecretCipher | None = None,
    ) -> None:
        self._secrets = secret_store
        self._cipher = cipher

    async def write(self, key: str, value: BaseModel) -> None:
        blob = value.model_dump_json()
        if self._cipher is not None:
            blob = self._cipher.seal(blob)
        await asyncio.to_thread(self._secrets.put, key, blob)
        logger.debug("Stored %s", key)

    async def read(self, key: str, model_type: Type[ModelT]) -> Optional[ModelT]:
        """Return the stored model, or ``None`` when nothing was written under ``key``."""
        blob = await asyncio.to_thread(self._secrets.get, key)
        if blob is None:
            return None
        if self._cipher is not None:
            blob = self._cipher.open(blob)
        return model_type.model_validate_json(blob)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._secrets.delete, key)
        logger.debug("Deleted %s", key)


__all__ = ["LocalObjectStore"]
