"""Symmetric encryption for credentials cached in the local object store."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

_KEY_CONTEXT = b"healthvault-local-object-store"


class SecretCipher:
    """Encrypt and decrypt cached blobs with a Fernet key derived from a passphrase."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Store encryption secret must be provided.")
        digest = hashlib.sha256(_KEY_CONTEXT + secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def seal(self, blob: str) -> str:
        return self._fernet.encrypt(blob.encode("utf-8")).decode("ascii")

    def open(self, sealed: str) -> str:
        try:
            blob = self._fernet.decrypt(sealed.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise ValueError(
                "Cached value could not be decrypted; was the store secret changed?"
            ) from exc
        return blob.decode("utf-8")


__all__ = ["SecretCipher"]
