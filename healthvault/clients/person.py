"""
Client for methods scoped to the authenticated person.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional
from uuid import UUID
from xml.etree import ElementTree

from healthvault.models.person import HealthRecordInfo, PersonInfo
from healthvault.services.request_message import HealthVaultMethods
from healthvault.utils.xml import find_child, find_text, iter_children, parse_guid

if TYPE_CHECKING:
    from healthvault.services.connection import HealthVaultConnectionBase


class PersonClient:
    """Fetch information about the people who authorized this application."""

    def __init__(self, connection: "HealthVaultConnectionBase") -> None:
        self._connection = connection

    async def get_authorized_people(self) -> List[PersonInfo]:
        response = await self._connection.execute(
            HealthVaultMethods.GET_AUTHORIZED_PEOPLE,
            1,
            "<parameters />",
        )
        if response.info is None:
            return []
        results = find_child(response.info, "response-results")
        if results is None:
            return []
        return [_parse_person(element) for element in iter_children(results, "person-info")]


def _parse_person(element: ElementTree.Element) -> PersonInfo:
    records: Dict[UUID, HealthRecordInfo] = {}
    for record in iter_children(element, "record"):
        record_id = parse_guid(record.get("id"), "record id")
        records[record_id] = HealthRecordInfo(
            id=record_id,
            name=(record.text or "").strip(),
            display_name=record.get("display-name"),
            relationship=record.get("rel-name"),
        )

    selected: Optional[str] = find_text(element, "selected-record-id")
    return PersonInfo(
        person_id=parse_guid(find_text(element, "person-id"), "person-id"),
        name=find_text(element, "name", ""),
        selected_record_id=parse_guid(selected, "selected-record-id") if selected else None,
        authorized_records=records,
    )


__all__ = ["PersonClient"]
