"""Deduplicated entity ID extraction from input records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .records import InputRecord, to_int


@dataclass(frozen=True, slots=True)
class IdSet:
    """Distinct positive IDs per entity family found in one batch of records."""

    member_ids: frozenset[int] = field(default_factory=frozenset)
    product_ids: frozenset[int] = field(default_factory=frozenset)
    course_ids: frozenset[int] = field(default_factory=frozenset)
    content_ids: frozenset[int] = field(default_factory=frozenset)

    def counts(self) -> dict[str, int]:
        return {
            "member": len(self.member_ids),
            "product": len(self.product_ids),
            "course": len(self.course_ids),
            "content": len(self.content_ids),
        }


def extract_required_ids(records: Iterable[InputRecord]) -> IdSet:
    """Collect the IDs that need name resolution in a single pass.

    Records with an unparsable ``day`` still contribute their IDs; only
    values greater than zero are kept.
    """

    member_ids: set[int] = set()
    product_ids: set[int] = set()
    course_ids: set[int] = set()
    content_ids: set[int] = set()

    for record in records:
        for target, value in (
            (member_ids, record.member_id),
            (product_ids, record.product_id),
            (course_ids, record.course_id),
            (content_ids, record.content_id),
        ):
            parsed = to_int(value)
            if parsed > 0:
                target.add(parsed)

    return IdSet(
        member_ids=frozenset(member_ids),
        product_ids=frozenset(product_ids),
        course_ids=frozenset(course_ids),
        content_ids=frozenset(content_ids),
    )
