try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from healthvault.services.secret_cipher import SecretCipher


def test_seal_and_open() -> None:
    cipher = SecretCipher(secret="store-secret")

    sealed = cipher.seal('{"token": "abc"}')

    assert "abc" not in sealed
    assert cipher.open(sealed) == '{"token": "abc"}'


def test_open_with_another_secret_fails() -> None:
    sealed = SecretCipher(secret="one").seal("payload")

    with pytest.raises(ValueError):
        SecretCipher(secret="two").open(sealed)


def test_empty_secret_is_rejected() -> None:
    with pytest.raises(ValueError):
        SecretCipher(secret="")
