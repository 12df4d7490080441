"""ElementTree helpers shared by the XML request and response code."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator, Optional
from uuid import UUID
from xml.etree import ElementTree

from healthvault.core.exceptions import HealthServiceInvalidResponseError


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def find_child(element: ElementTree.Element, name: str) -> Optional[ElementTree.Element]:
    """Return the first direct child whose local name is ``name``."""
    for child in element:
        if local_name(child.tag) == name:
            return child
    return None


def iter_children(element: ElementTree.Element, name: str) -> Iterator[ElementTree.Element]:
    for child in element:
        if local_name(child.tag) == name:
            yield child


def find_text(
    element: ElementTree.Element, name: str, default: Optional[str] = None
) -> Optional[str]:
    child = find_child(element, name)
    if child is None or child.text is None:
        return default
    return child.text.strip()


def parse_guid(value: Optional[str], field: str) -> UUID:
    """Parse a GUID from a platform response, rejecting missing or malformed values."""
    try:
        return UUID(value or "")
    except ValueError as exc:
        raise HealthServiceInvalidResponseError(
            f"The platform response has an invalid {field}: {value!r}."
        ) from exc


def to_xml(element: ElementTree.Element) -> str:
    return ElementTree.tostring(element, encoding="unicode")


def xml_from_now(now: datetime | None = None) -> str:
    """Timestamp used for ``<msg-time>``: ISO 8601, UTC, millisecond precision."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def universal_sortable(moment: datetime) -> str:
    """Format ``moment`` with the second-precision ``u`` pattern (``2017-06-01 08:00:00Z``)."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")


def parse_xml_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = [
    "find_child",
    "find_text",
    "iter_children",
    "local_name",
    "parse_guid",
    "parse_xml_datetime",
    "to_xml",
    "universal_sortable",
    "xml_from_now",
]
