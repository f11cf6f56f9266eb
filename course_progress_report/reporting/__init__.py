"""Report rendering for monthly course progress."""

from .formatter import (
    REPORT_COLUMNS,
    ReportRow,
    build_report_rows,
    progress_percent,
    render_report_csv,
    report_filename,
    seconds_to_hms,
)

__all__ = [
    "REPORT_COLUMNS",
    "ReportRow",
    "build_report_rows",
    "progress_percent",
    "render_report_csv",
    "report_filename",
    "seconds_to_hms",
]
