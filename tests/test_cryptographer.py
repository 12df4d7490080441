try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
import hashlib
import hmac

import pytest

from healthvault.services.cryptographer import Cryptographer, decode_shared_secret


def test_hmac_uses_decoded_shared_secret() -> None:
    secret = base64.b64encode(b"shared-key").decode("ascii")
    crypto = Cryptographer()

    result = crypto.compute_hmac_with_secret(secret, b"<header/>")

    expected = hmac.new(b"shared-key", b"<header/>", hashlib.sha256).digest()
    assert result.keyed
    assert result.algorithm == "HMACSHA256"
    assert result.value == base64.b64encode(expected).decode("ascii")
    assert result.to_element().tag == "hmac-data"
    assert result.to_element().get("algName") == "HMACSHA256"


def test_hash_is_plain_digest() -> None:
    crypto = Cryptographer(hash_algorithm="SHA1")

    result = crypto.compute_hash(b"<info></info>")

    assert not result.keyed
    assert result.value == base64.b64encode(hashlib.sha1(b"<info></info>").digest()).decode("ascii")
    assert result.to_element().tag == "hash-data"


def test_non_base64_secret_is_used_as_text() -> None:
    assert decode_shared_secret("not base64!") == b"not base64!"


def test_unknown_algorithms_are_rejected() -> None:
    with pytest.raises(ValueError):
        Cryptographer(hmac_algorithm="HMACMD5")
    with pytest.raises(ValueError):
        Cryptographer(hash_algorithm="MD5")
