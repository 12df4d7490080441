"""Exception types raised by the HealthVault SDK."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


class HealthServiceStatusCode(IntEnum):
    """Platform status codes the SDK reacts to."""

    OK = 0
    FAILED = 1
    CREDENTIAL_TOKEN_EXPIRED = 7
    AUTHENTICATED_SESSION_TOKEN_EXPIRED = 65


class HealthVaultError(Exception):
    """Base class for every error raised by the SDK."""


class AuthenticationError(HealthVaultError):
    """Provisioning or session credential acquisition failed."""


class ShellAuthError(AuthenticationError):
    """The Shell redirect did not carry the expected instance id."""


class OperationCancelled(HealthVaultError):
    """The user aborted an interactive browser flow."""


class InvalidStateError(HealthVaultError):
    """An operation was invoked before its prerequisite state was reached."""


class HealthHttpError(HealthVaultError):
    """The platform answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        self.status_code = status_code
        self.message = message or f"Request failed with HTTP status {status_code}."
        super().__init__(self.message)


class HealthServiceError(HealthVaultError):
    """The platform processed an XML request and returned a failure status."""

    def __init__(self, status_code: int, error: Optional[str] = None) -> None:
        self.status_code = status_code
        self.error = error
        detail = f": {error}" if error else ""
        super().__init__(f"Platform returned status code {status_code}{detail}")

    @property
    def is_session_expired(self) -> bool:
        return self.status_code in (
            HealthServiceStatusCode.AUTHENTICATED_SESSION_TOKEN_EXPIRED,
            HealthServiceStatusCode.CREDENTIAL_TOKEN_EXPIRED,
        )


class HealthServiceInvalidResponseError(HealthServiceError):
    """The platform response could not be parsed."""

    def __init__(self, error: str) -> None:
        super().__init__(HealthServiceStatusCode.FAILED, error)


__all__ = [
    "AuthenticationError",
    "HealthHttpError",
    "HealthServiceError",
    "HealthServiceInvalidResponseError",
    "HealthServiceStatusCode",
    "HealthVaultError",
    "InvalidStateError",
    "OperationCancelled",
    "ShellAuthError",
]
