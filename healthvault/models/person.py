"""
Models for the authenticated person and the records they authorized.
"""

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class HealthRecordInfo(BaseModel):
    """A health record the application is authorized to access."""

    id: UUID
    name: str = ""
    display_name: Optional[str] = None
    relationship: Optional[str] = None


class PersonInfo(BaseModel):
    """The authenticated user's profile."""

    person_id: UUID
    name: str = ""
    selected_record_id: Optional[UUID] = None
    authorized_records: Dict[UUID, HealthRecordInfo] = Field(default_factory=dict)

    @property
    def authorized_record_ids(self) -> List[UUID]:
        return list(self.authorized_records)

    @property
    def selected_record(self) -> Optional[HealthRecordInfo]:
        if self.selected_record_id is None:
            return None
        return self.authorized_records.get(self.selected_record_id)


__all__ = ["HealthRecordInfo", "PersonInfo"]
