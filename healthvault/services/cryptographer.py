"""Keyed and plain hashing used to sign platform requests."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Callable, Dict

from healthvault.schemas.auth import CryptoData

_HASH_FACTORIES: Dict[str, Callable[..., "hashlib._Hash"]] = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}

_HMAC_DIGESTS: Dict[str, str] = {
    "HMACSHA1": "sha1",
    "HMACSHA256": "sha256",
    "HMACSHA512": "sha512",
}


class Cryptographer:
    """Compute HMACs and hashes over byte buffers and return base64 results."""

    def __init__(self, *, hmac_algorithm: str = "HMACSHA256", hash_algorithm: str = "SHA256") -> None:
        if hmac_algorithm not in _HMAC_DIGESTS:
            raise ValueError(f"Unsupported HMAC algorithm: {hmac_algorithm}")
        if hash_algorithm not in _HASH_FACTORIES:
            raise ValueError(f"Unsupported hash algorithm: {hash_algorithm}")
        self.hmac_algorithm = hmac_algorithm
        self.hash_algorithm = hash_algorithm

    def compute_hmac(self, key: bytes, data: bytes) -> CryptoData:
        digest = hmac.new(key, data, _HMAC_DIGESTS[self.hmac_algorithm]).digest()
        return CryptoData(
            algorithm=self.hmac_algorithm,
            value=base64.b64encode(digest).decode("ascii"),
            keyed=True,
        )

    def compute_hmac_with_secret(self, shared_secret: str, data: bytes) -> CryptoData:
        """HMAC ``data`` with a base64-encoded shared secret as the key."""
        return self.compute_hmac(decode_shared_secret(shared_secret), data)

    def compute_hash(self, data: bytes) -> CryptoData:
        digest = _HASH_FACTORIES[self.hash_algorithm](data).digest()
        return CryptoData(
            algorithm=self.hash_algorithm,
            value=base64.b64encode(digest).decode("ascii"),
        )


def decode_shared_secret(shared_secret: str) -> bytes:
    """Decode a platform shared secret; secrets that are not base64 are used as UTF-8."""
    try:
        return base64.b64decode(shared_secret, validate=True)
    except ValueError:
        return shared_secret.encode("utf-8")


__all__ = ["Cryptographer", "decode_shared_secret"]
