"""Wire-level authentication blocks embedded in platform requests."""

from __future__ import annotations

from typing import Optional
from uuid import UUID
from xml.etree import ElementTree

from pydantic import BaseModel, Field

HMAC_DATA_ELEMENT = "hmac-data"
HASH_DATA_ELEMENT = "hash-data"


class CryptoData(BaseModel):
    """The output of a hash or keyed-hash computation, base64 encoded."""

    algorithm: str
    value: str
    keyed: bool = Field(False, description="True when produced by an HMAC.")

    def to_element(self) -> ElementTree.Element:
        element = ElementTree.Element(HMAC_DATA_ELEMENT if self.keyed else HASH_DATA_ELEMENT)
        element.set("algName", self.algorithm)
        element.text = self.value
        return element


class OfflinePersonInfo(BaseModel):
    """Identifies the person a record-scoped call is made on behalf of."""

    offline_person_id: UUID


class AuthSession(BaseModel):
    """The ``<auth-session>`` block of an authenticated XML request."""

    auth_token: str
    person: Optional[OfflinePersonInfo] = None

    def to_element(self) -> ElementTree.Element:
        element = ElementTree.Element("auth-session")
        ElementTree.SubElement(element, "auth-token").text = self.auth_token
        if self.person is not None:
            person = ElementTree.SubElement(element, "offline-person-info")
            ElementTree.SubElement(person, "offline-person-id").text = str(
                self.person.offline_person_id
            )
        return element


__all__ = ["AuthSession", "CryptoData", "OfflinePersonInfo"]
