"""
Request and response structures exchanged with the platform.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import UUID
from xml.etree import ElementTree

from pydantic import BaseModel, model_validator

from healthvault.schemas.auth import AuthSession, CryptoData


class RequestHeader(BaseModel):
    """The ``<header>`` section of an XML platform request.

    Exactly one of ``app_id`` and ``auth_session`` identifies the caller.
    """

    method: str
    method_version: Optional[int] = None
    record_id: Optional[UUID] = None
    app_id: Optional[UUID] = None
    auth_session: Optional[AuthSession] = None
    culture_code: Optional[str] = None
    msg_time: str
    msg_ttl: int
    version: str
    info_hash: Optional[CryptoData] = None

    @model_validator(mode="after")
    def _single_identity(self) -> "RequestHeader":
        if (self.app_id is None) == (self.auth_session is None):
            raise ValueError("A request header needs exactly one of app-id or auth-session.")
        return self

    def to_element(self) -> ElementTree.Element:
        header = ElementTree.Element("header")
        ElementTree.SubElement(header, "method").text = self.method
        if self.method_version is not None:
            ElementTree.SubElement(header, "method-version").text = str(self.method_version)
        if self.record_id is not None:
            ElementTree.SubElement(header, "record-id").text = str(self.record_id)
        if self.auth_session is not None:
            header.append(self.auth_session.to_element())
        else:
            ElementTree.SubElement(header, "app-id").text = str(self.app_id)
        if self.culture_code:
            ElementTree.SubElement(header, "culture-code").text = self.culture_code
        ElementTree.SubElement(header, "msg-time").text = self.msg_time
        ElementTree.SubElement(header, "msg-ttl").text = str(self.msg_ttl)
        ElementTree.SubElement(header, "version").text = self.version
        if self.info_hash is not None:
            ElementTree.SubElement(header, "info-hash").append(self.info_hash.to_element())
        return header


@dataclass(slots=True)
class HealthServiceResponseData:
    """A successfully parsed platform response."""

    status_code: int
    info: Optional[ElementTree.Element] = None
    response_id: Optional[str] = None


@dataclass(slots=True)
class RestRequest:
    """A typed call against the platform's JSON API."""

    method: str
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    record_id: Optional[UUID] = None
    correlation_id: Optional[UUID] = None


__all__ = ["HealthServiceResponseData", "RequestHeader", "RestRequest"]
