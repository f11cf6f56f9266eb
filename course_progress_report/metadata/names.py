"""Display-name records resolved from the metadata service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from ..foundation.records import to_int


class EntityType(str, Enum):
    """Entity families whose IDs appear in progress records."""

    MEMBER = "member"
    PRODUCT = "product"
    COURSE = "course"
    CONTENT = "content"


#: Path segment for single-entity lookups.
ENTITY_PATHS: dict[EntityType, str] = {
    EntityType.PRODUCT: "/product",
    EntityType.COURSE: "/course",
    EntityType.CONTENT: "/course-content",
}


@dataclass(frozen=True, slots=True)
class MemberProfile:
    login_name: str = ""
    display_name: str = ""


@dataclass(frozen=True, slots=True)
class EntityName:
    name: str = ""


@dataclass(frozen=True)
class ResolvedNames:
    """The four ID -> display record mappings for one run.

    An ID missing from a mapping is a valid state and renders as an empty
    string in the report.
    """

    members: Mapping[int, MemberProfile] = field(default_factory=dict)
    products: Mapping[int, EntityName] = field(default_factory=dict)
    courses: Mapping[int, EntityName] = field(default_factory=dict)
    contents: Mapping[int, EntityName] = field(default_factory=dict)

    def counts(self) -> dict[str, int]:
        return {
            "member": len(self.members),
            "product": len(self.products),
            "course": len(self.courses),
            "content": len(self.contents),
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def entity_name_from_payload(
    entity_type: EntityType, payload: Mapping[str, Any]
) -> EntityName:
    """Pick the display name the backoffice shows for an entity."""

    extras = payload.get("extras") or {}
    if not isinstance(extras, Mapping):
        extras = {}

    if entity_type is EntityType.PRODUCT:
        return EntityName(_text(extras.get("publicName") or payload.get("name")))
    if entity_type is EntityType.COURSE:
        return EntityName(_text(payload.get("publicName") or payload.get("name")))
    if entity_type is EntityType.CONTENT:
        return EntityName(_text(payload.get("name")))
    raise ValueError(f"Unsupported entity type for single lookup: {entity_type}")


def members_from_payload(payload: Any) -> dict[int, MemberProfile]:
    """Build the member mapping from a batched ``/member/ids`` response.

    Non-list payloads and entries without a usable id are ignored.
    """

    mapping: dict[int, MemberProfile] = {}
    if not isinstance(payload, list):
        return mapping
    for item in payload:
        if not isinstance(item, Mapping):
            continue
        member_id = to_int(item.get("id"))
        if member_id <= 0:
            continue
        extras = item.get("extras") or {}
        if not isinstance(extras, Mapping):
            extras = {}
        mapping[member_id] = MemberProfile(
            login_name=_text(item.get("name")),
            display_name=_text(extras.get("name")),
        )
    return mapping
