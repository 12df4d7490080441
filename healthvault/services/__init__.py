"""Service layer exports.

Connections live in :mod:`healthvault.services.soda_connection` and are built
through :mod:`healthvault.dependencies`.
"""

from .cryptographer import Cryptographer
from .local_object_store import LocalObjectStore
from .response_parser import HealthServiceResponseParser
from .secret_cipher import SecretCipher
from .shell_auth import ShellAuthService

__all__ = [
    "Cryptographer",
    "HealthServiceResponseParser",
    "LocalObjectStore",
    "SecretCipher",
    "ShellAuthService",
]
