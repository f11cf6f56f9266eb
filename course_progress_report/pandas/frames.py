"""Pandas DataFrame adapters for records, aggregations and report rows."""

from dataclasses import asdict, fields
from typing import Sequence

import pandas as pd  # type: ignore

from course_progress_report.foundation.monthly import MonthlyAggregation
from course_progress_report.foundation.records import InputRecord
from course_progress_report.reporting.formatter import REPORT_COLUMNS, ReportRow

RECORD_COLUMNS = [f.name for f in fields(InputRecord)]
AGGREGATION_COLUMNS = [f.name for f in fields(MonthlyAggregation)]


def records_to_dataframe(records: Sequence[InputRecord]) -> pd.DataFrame:
    """Convert input records to a DataFrame, keeping the original row order.

    Example:
        >>> records = parse_csv_text(text)
        >>> records_to_dataframe(records).groupby("member_id").size()
    """
    return pd.DataFrame([asdict(r) for r in records], columns=RECORD_COLUMNS)


def aggregations_to_dataframe(
    aggregations: Sequence[MonthlyAggregation],
) -> pd.DataFrame:
    """Convert monthly aggregations to a DataFrame.

    Rows are sorted by member_id, month, course_id, product_id, content_id,
    matching the report order.
    """
    if not aggregations:
        return pd.DataFrame(columns=AGGREGATION_COLUMNS)

    df = pd.DataFrame([asdict(a) for a in aggregations], columns=AGGREGATION_COLUMNS)
    df = df.sort_values(
        ["member_id", "month", "course_id", "product_id", "content_id"]
    ).reset_index(drop=True)
    return df


def report_rows_to_dataframe(rows: Sequence[ReportRow]) -> pd.DataFrame:
    """Convert report rows to a DataFrame with the report's column names."""
    return pd.DataFrame([asdict(r) for r in rows], columns=REPORT_COLUMNS)
