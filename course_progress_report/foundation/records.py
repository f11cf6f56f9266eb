"""Input record parsing for course-viewing progress data.

Raw rows arrive either as CSV text exported from the progress store or as
already-structured rows returned by the remote record source. Both shapes are
normalised into :class:`InputRecord` values so that ID extraction and monthly
aggregation never have to care where the data came from.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"^[+-]?\d+")

#: Canonical source column -> accepted aliases (checked in order).
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "member_id": ("targetId", "memberId"),
    "product_id": ("productId",),
    "course_id": ("courseId",),
    "content_id": ("courseContentId", "contentId"),
    "day": ("dailyDate", "day", "month"),
    "cumulative_play_time_sec": ("cumulativePlayTime",),
    "total_play_time_sec": ("totalPlayTime",),
    "total_content_play_time_sec": ("totalContentPlayTime",),
}


@dataclass(frozen=True, slots=True)
class InputRecord:
    """One raw course-viewing row with play-time counters for a single day.

    Attributes
    ----------
    member_id, product_id, course_id, content_id:
        Entity identifiers. Unparsable values are stored as ``0``.
    day:
        Raw day string as reported by the source (``YYYY-MM-DD`` or an ISO
        timestamp). Left unparsed here; the aggregator derives the month.
    cumulative_play_time_sec, total_play_time_sec:
        Play-time counters in seconds, never negative.
    total_content_play_time_sec:
        Total duration of the content in seconds, never negative.
    """

    member_id: int
    product_id: int
    course_id: int
    content_id: int
    day: str
    cumulative_play_time_sec: int = 0
    total_play_time_sec: int = 0
    total_content_play_time_sec: int = 0


def to_int(value: Any) -> int:
    """Convert ``value`` to ``int`` without ever raising.

    Blank, missing and unparsable values become ``0``. Strings are read up
    to the first non-digit character, so ``"12abc"`` gives ``12`` and
    ``"3.7"`` gives ``3``.
    """

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return int(value)
    match = _INT_PREFIX.match(str(value).strip())
    if match is None:
        return 0
    try:
        return int(match.group(0))
    except ValueError:
        # digit count above the interpreter's int conversion limit
        return 0


def _lookup(row: Mapping[str, Any], field_name: str) -> Any:
    for alias in FIELD_ALIASES[field_name]:
        if alias in row:
            return row[alias]
    return None


def _record_from_mapping(row: Mapping[str, Any]) -> InputRecord:
    day = _lookup(row, "day")
    return InputRecord(
        member_id=to_int(_lookup(row, "member_id")),
        product_id=to_int(_lookup(row, "product_id")),
        course_id=to_int(_lookup(row, "course_id")),
        content_id=to_int(_lookup(row, "content_id")),
        day="" if day is None else str(day).strip(),
        cumulative_play_time_sec=max(0, to_int(_lookup(row, "cumulative_play_time_sec"))),
        total_play_time_sec=max(0, to_int(_lookup(row, "total_play_time_sec"))),
        total_content_play_time_sec=max(
            0, to_int(_lookup(row, "total_content_play_time_sec"))
        ),
    )


def parse_csv_rows(text: str) -> list[dict[str, str]]:
    """Split CSV text into header-keyed dictionaries.

    Blank lines are skipped entirely. Rows shorter than the header are padded
    with empty strings; extra trailing fields are ignored. Header names and
    values are trimmed.
    """

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff"), newline=""))
    records = [values for values in reader if any(value.strip() for value in values)]
    if not records:
        return []

    headers = [name.strip() for name in records[0]]
    rows: list[dict[str, str]] = []
    for values in records[1:]:
        rows.append(
            {
                header: values[index].strip() if index < len(values) else ""
                for index, header in enumerate(headers)
            }
        )
    return rows


def parse_csv_text(text: str) -> list[InputRecord]:
    """Parse progress CSV text into input records, preserving row order."""

    rows = parse_csv_rows(text)
    logger.debug("Parsed %d CSV rows", len(rows))
    return [_record_from_mapping(row) for row in rows]


def records_from_source_rows(rows: Iterable[Any]) -> list[InputRecord]:
    """Convert rows returned by the remote record source into input records.

    Each known source field maps onto its record attribute by name; unknown
    fields are ignored. Entries that are not mappings are skipped.
    """

    records: list[InputRecord] = []
    for idx, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.warning("Skipping non-mapping source row at index %d", idx)
            continue
        records.append(_record_from_mapping(row))
    return records
