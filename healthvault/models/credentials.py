"""
Domain models for application provisioning and session credentials.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApplicationCreationInfo(BaseModel):
    """Result of provisioning a new application instance with the platform."""

    model_config = ConfigDict(frozen=True)

    app_instance_id: UUID = Field(..., description="Identifier of the provisioned instance.")
    shared_secret: str = Field(..., description="Base64 application shared secret.")
    app_creation_token: str = Field(
        ..., description="Opaque token presented to the Shell during provisioning."
    )


class SessionCredential(BaseModel):
    """A time-limited token used to sign ordinary platform calls."""

    token: str
    shared_secret: str
    expiration_utc: datetime

    @field_validator("expiration_utc")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        current = now or datetime.now(timezone.utc)
        return current >= self.expiration_utc


__all__ = ["ApplicationCreationInfo", "SessionCredential"]
