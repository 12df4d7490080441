"""Public schema exports."""

from .auth import AuthSession, CryptoData, OfflinePersonInfo
from .request import HealthServiceResponseData, RequestHeader, RestRequest

__all__ = [
    "AuthSession",
    "CryptoData",
    "HealthServiceResponseData",
    "OfflinePersonInfo",
    "RequestHeader",
    "RestRequest",
]
