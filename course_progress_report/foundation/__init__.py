"""Foundational building blocks for the course progress report.

This package exposes the input record contract, ID extraction and the
monthly aggregation that every report is built from.
"""

from .identifiers import IdSet, extract_required_ids
from .monthly import (
    AggregateKey,
    MonthlyAggregation,
    MonthlyAggregator,
    aggregate_monthly,
    parse_month,
)
from .records import (
    InputRecord,
    parse_csv_rows,
    parse_csv_text,
    records_from_source_rows,
    to_int,
)

__all__ = [
    "AggregateKey",
    "IdSet",
    "InputRecord",
    "MonthlyAggregation",
    "MonthlyAggregator",
    "aggregate_monthly",
    "extract_required_ids",
    "parse_csv_rows",
    "parse_csv_text",
    "parse_month",
    "records_from_source_rows",
    "to_int",
]
