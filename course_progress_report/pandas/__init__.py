"""Pandas DataFrame adapters for course progress report components."""

from .frames import (
    aggregations_to_dataframe,
    records_to_dataframe,
    report_rows_to_dataframe,
)

__all__ = [
    "aggregations_to_dataframe",
    "records_to_dataframe",
    "report_rows_to_dataframe",
]
