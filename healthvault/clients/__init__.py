"""Expose transport and storage clients."""

from .browser_auth import BrowserAuthBroker, ConsoleBrowserAuthBroker
from .rest import HealthVaultRestClient
from .rest_request import HealthServiceRestRequest, HealthServiceRestResponseData
from .secret_store import SQLiteSecretStore
from .web_request import HealthWebRequestClient

__all__ = [
    "BrowserAuthBroker",
    "ConsoleBrowserAuthBroker",
    "HealthServiceRestRequest",
    "HealthServiceRestResponseData",
    "HealthVaultRestClient",
    "HealthWebRequestClient",
    "SQLiteSecretStore",
]
