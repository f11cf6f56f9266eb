"""Monthly aggregation of course-viewing records.

Records are grouped by (month, member, product, course, content). Play-time
counters accumulate additively across the days of a month, whereas the
content duration is re-reported on every row and is folded with ``max``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, NamedTuple

from .records import InputRecord

logger = logging.getLogger(__name__)

_MONTH_ONLY = re.compile(r"^(\d{4})-(\d{2})$")


class AggregateKey(NamedTuple):
    """Composite key identifying one output row."""

    month: str
    member_id: int
    product_id: int
    course_id: int
    content_id: int


@dataclass(frozen=True, slots=True)
class MonthlyAggregation:
    """Finalized aggregate for one (month, member, product, course, content).

    Attributes
    ----------
    month:
        Calendar month as ``YYYY-MM``.
    cumulative_play_time_sec, total_play_time_sec:
        Sum over all matching records.
    total_content_play_time_sec:
        Largest content duration observed among matching records.
    row_count:
        Number of records folded into this aggregate.
    """

    month: str
    member_id: int
    product_id: int
    course_id: int
    content_id: int
    cumulative_play_time_sec: int
    total_play_time_sec: int
    total_content_play_time_sec: int
    row_count: int

    @property
    def key(self) -> AggregateKey:
        return AggregateKey(
            self.month, self.member_id, self.product_id, self.course_id, self.content_id
        )


def parse_month(day: str | None) -> str | None:
    """Return ``YYYY-MM`` for a day string, or ``None`` when it cannot be read.

    Accepts ISO dates, ISO timestamps (``Z`` or explicit offsets) and bare
    ``YYYY-MM`` values.
    """

    if not day:
        return None
    value = str(day).strip()
    if not value:
        return None

    month_match = _MONTH_ONLY.match(value)
    if month_match:
        year, month = int(month_match.group(1)), int(month_match.group(2))
        if 1 <= month <= 12:
            return f"{year:04d}-{month:02d}"
        return None

    try:
        parsed: date = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = date.fromisoformat(value[:10])
        except ValueError:
            return None
    return f"{parsed.year:04d}-{parsed.month:02d}"


class MonthlyAggregator:
    """Fold input records into per-month buckets."""

    def aggregate(self, records: Iterable[InputRecord]) -> list[MonthlyAggregation]:
        buckets: dict[AggregateKey, dict[str, int]] = {}
        skipped = 0
        for record in records:
            month = parse_month(record.day)
            if month is None:
                skipped += 1
                continue

            key = AggregateKey(
                month,
                record.member_id,
                record.product_id,
                record.course_id,
                record.content_id,
            )
            bucket = buckets.setdefault(
                key,
                {
                    "cumulative_play_time_sec": 0,
                    "total_play_time_sec": 0,
                    "total_content_play_time_sec": 0,
                    "row_count": 0,
                },
            )
            bucket["cumulative_play_time_sec"] += record.cumulative_play_time_sec
            bucket["total_play_time_sec"] += record.total_play_time_sec
            bucket["total_content_play_time_sec"] = max(
                bucket["total_content_play_time_sec"],
                record.total_content_play_time_sec,
            )
            bucket["row_count"] += 1

        if skipped:
            logger.info("Skipped %d records with an unparsable day", skipped)

        return [
            MonthlyAggregation(
                month=key.month,
                member_id=key.member_id,
                product_id=key.product_id,
                course_id=key.course_id,
                content_id=key.content_id,
                **payload,
            )
            for key, payload in buckets.items()
        ]


def aggregate_monthly(records: Iterable[InputRecord]) -> list[MonthlyAggregation]:
    """Convenience wrapper around :meth:`MonthlyAggregator.aggregate`."""

    return MonthlyAggregator().aggregate(records)
