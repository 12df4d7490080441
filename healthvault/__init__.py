"""Python client for the HealthVault platform."""

from healthvault.core.config import SDK_VERSION, HealthVaultSettings, get_settings
from healthvault.core.exceptions import (
    AuthenticationError,
    HealthHttpError,
    HealthServiceError,
    HealthVaultError,
    InvalidStateError,
)

__version__ = SDK_VERSION

__all__ = [
    "AuthenticationError",
    "HealthHttpError",
    "HealthServiceError",
    "HealthVaultError",
    "HealthVaultSettings",
    "InvalidStateError",
    "__version__",
    "get_settings",
]
