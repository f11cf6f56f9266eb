"""Monthly course progress reports built from daily viewing records."""

from .config import ReportConfig
from .errors import (
    AuthFailed,
    AuthRequired,
    InvalidQueryError,
    RecordSourceError,
    ReportError,
)
from .pipeline import (
    CsvInput,
    MonthlyReport,
    build_monthly_report,
    generate_monthly_report,
)
from .metadata.source import RemoteQuery

__all__ = [
    "AuthFailed",
    "AuthRequired",
    "CsvInput",
    "InvalidQueryError",
    "MonthlyReport",
    "RecordSourceError",
    "RemoteQuery",
    "ReportConfig",
    "ReportError",
    "build_monthly_report",
    "generate_monthly_report",
]
