"""Monthly progress report rendering.

Joins monthly aggregations with resolved display names, derives the
human-readable duration and progress columns, and serialises the result as
CSV text in a stable order.
"""

from __future__ import annotations

import io
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

import pandas as pd

from ..foundation.monthly import MonthlyAggregation
from ..metadata.names import EntityName, MemberProfile, ResolvedNames

logger = logging.getLogger(__name__)

_HUNDREDTHS = Decimal("0.01")

REPORT_FILENAME_PREFIX = "course_clip_progress_monthly"

#: Output column order, matching the field order of :class:`ReportRow`.
REPORT_COLUMNS = [
    "month",
    "memberId",
    "memberEmail",
    "memberName",
    "productId",
    "productName",
    "courseId",
    "courseName",
    "courseContentId",
    "contentName",
    "cumulativePlayTimeHms",
    "totalPlayTimeHms",
    "totalContentPlayTimeHms",
    "progressPercent",
    "rowCount",
]


@dataclass(frozen=True, slots=True)
class ReportRow:
    """One output line of the monthly report."""

    month: str
    memberId: int
    memberEmail: str
    memberName: str
    productId: int
    productName: str
    courseId: int
    courseName: str
    courseContentId: int
    contentName: str
    cumulativePlayTimeHms: str
    totalPlayTimeHms: str
    totalContentPlayTimeHms: str
    progressPercent: str
    rowCount: int


def seconds_to_hms(total_seconds: int | None) -> str:
    """Render seconds as zero-padded ``HH:MM:SS``.

    ``None``, zero and negative values render as ``00:00:00``.
    """
    if not total_seconds or total_seconds < 0:
        return "00:00:00"
    total_seconds = int(total_seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def progress_percent(total_play_time_sec: int, total_content_play_time_sec: int) -> str:
    """Watched share of the content, capped at 100, e.g. ``"50.00%"``.

    Returns an empty string when the content duration is not positive.
    """
    if total_content_play_time_sec <= 0:
        return ""
    ratio = min(100.0, total_play_time_sec / total_content_play_time_sec * 100)
    # exact binary value, ties rounded away from zero
    return f"{Decimal(ratio).quantize(_HUNDREDTHS, rounding=ROUND_HALF_UP)}%"


def _sort_key(aggregation: MonthlyAggregation) -> tuple[int, str, int, int, int]:
    return (
        aggregation.member_id,
        aggregation.month,
        aggregation.course_id,
        aggregation.product_id,
        aggregation.content_id,
    )


def build_report_rows(
    aggregations: Iterable[MonthlyAggregation], names: ResolvedNames
) -> list[ReportRow]:
    """Join aggregations with resolved names and sort them for output.

    Sort order: member, month, course, product, content (all ascending).
    """
    empty_member = MemberProfile()
    empty_name = EntityName()
    rows: list[ReportRow] = []
    for item in sorted(aggregations, key=_sort_key):
        member = names.members.get(item.member_id, empty_member)
        rows.append(
            ReportRow(
                month=item.month,
                memberId=item.member_id,
                memberEmail=member.login_name,
                memberName=member.display_name,
                productId=item.product_id,
                productName=names.products.get(item.product_id, empty_name).name,
                courseId=item.course_id,
                courseName=names.courses.get(item.course_id, empty_name).name,
                courseContentId=item.content_id,
                contentName=names.contents.get(item.content_id, empty_name).name,
                cumulativePlayTimeHms=seconds_to_hms(item.cumulative_play_time_sec),
                totalPlayTimeHms=seconds_to_hms(item.total_play_time_sec),
                totalContentPlayTimeHms=seconds_to_hms(item.total_content_play_time_sec),
                progressPercent=progress_percent(
                    item.total_play_time_sec, item.total_content_play_time_sec
                ),
                rowCount=item.row_count,
            )
        )
    return rows


def render_report_csv(rows: Iterable[ReportRow]) -> str:
    """Serialise report rows as CSV text with a header line.

    Values containing commas or quotes are quoted; everything else is
    written verbatim.
    """
    df = pd.DataFrame([asdict(row) for row in rows], columns=REPORT_COLUMNS)
    buffer = io.StringIO()
    df.to_csv(buffer, index=False, lineterminator="\n")
    logger.debug("Rendered %d report rows", len(df))
    return buffer.getvalue()


def report_filename(now: datetime | None = None) -> str:
    """Suggested filename embedding the run timestamp (UTC, second precision).

    Example: ``course_clip_progress_monthly_2024-05-01T09-30-00.csv``
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    stamp = now.isoformat()[:19].replace(":", "-").replace(".", "-")
    return f"{REPORT_FILENAME_PREFIX}_{stamp}.csv"
