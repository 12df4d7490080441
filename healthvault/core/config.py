"""
SDK configuration models and helpers.

Centralizes settings management so the connection, the transports and the
command-line scripts share a consistent configuration surface.
"""

from functools import lru_cache
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SDK_VERSION = "0.1.0"
SDK_USER_AGENT = f"healthvault-python/{SDK_VERSION}"

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_REQUEST_TIME_TO_LIVE_SECONDS = 30 * 60


def _ensure_trailing_slash(value: str) -> str:
    return value if value.endswith("/") else f"{value}/"


class RetrySettings(BaseModel):
    """Retry policy applied to platform calls failing with HTTP 500."""

    retry_on_500_count: int = Field(2, ge=0)
    retry_on_500_sleep_seconds: float = Field(1.0, ge=0)


class SecuritySettings(BaseModel):
    """Security-related configuration."""

    store_encryption_secret: Optional[str] = Field(
        None,
        description=(
            "Secret used to derive the symmetric key for encrypting cached credentials."
        ),
    )


class HealthVaultSettings(BaseSettings):
    """Root settings object for a HealthVault client application."""

    model_config = SettingsConfigDict(
        env_prefix="HEALTHVAULT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    master_application_id: UUID
    default_healthvault_url: str = "https://platform.healthvault.com/platform/"
    default_healthvault_shell_url: str = "https://account.healthvault.com/"
    rest_healthvault_url: str = "https://data.microsofthealth.net/"
    rest_api_version: str = "1.0-rc"
    is_multi_record_app: bool = False
    multi_instance_aware: bool = False
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS
    request_time_to_live_seconds: int = DEFAULT_REQUEST_TIME_TO_LIVE_SECONDS
    culture_code: Optional[str] = "en-US"
    session_credential_lifetime_seconds: int = Field(
        4 * 60 * 60,
        gt=0,
        description="Lifetime assumed for a session token when the platform omits one.",
    )
    hmac_algorithm: str = "HMACSHA256"
    hash_algorithm: str = "SHA256"
    store_path: str = "~/.healthvault/store.sqlite3"
    log_level: str = "INFO"
    retry: RetrySettings = Field(default_factory=RetrySettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @field_validator(
        "default_healthvault_url",
        "default_healthvault_shell_url",
        "rest_healthvault_url",
    )
    @classmethod
    def _normalize_url(cls, value: str) -> str:
        return _ensure_trailing_slash(value.strip())

    @field_validator("request_timeout_seconds")
    @classmethod
    def _default_timeout(cls, value: int) -> int:
        # -1 disables the timeout.
        return DEFAULT_REQUEST_TIMEOUT_SECONDS if value < -1 else value

    @field_validator("request_time_to_live_seconds")
    @classmethod
    def _default_ttl(cls, value: int) -> int:
        return DEFAULT_REQUEST_TIME_TO_LIVE_SECONDS if value < -1 else value

    @property
    def request_timeout(self) -> Optional[float]:
        """Timeout in seconds suitable for httpx, or ``None`` when disabled."""
        if self.request_timeout_seconds == -1:
            return None
        return float(self.request_timeout_seconds)


@lru_cache()
def get_settings() -> HealthVaultSettings:
    """Return a cached settings object."""
    return HealthVaultSettings()  # type: ignore[call-arg]


__all__ = [
    "SDK_USER_AGENT",
    "SDK_VERSION",
    "HealthVaultSettings",
    "RetrySettings",
    "SecuritySettings",
    "get_settings",
]
