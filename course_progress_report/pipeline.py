"""End-to-end monthly course progress report.

Stages run strictly in order and each finishes before the next starts:

1. Load records (CSV text, or authenticated fetch from the record source)
2. Extract the entity IDs that need names
3. Aggregate records per month
4. Resolve names through the metadata service
5. Format the report as CSV

A fatal error at any stage propagates to the caller and no report is
returned.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx
import structlog
from opentelemetry import trace

from .config import ReportConfig
from .foundation.identifiers import extract_required_ids
from .foundation.monthly import MonthlyAggregator
from .foundation.records import InputRecord, parse_csv_text, records_from_source_rows
from .metadata.auth import authenticate
from .metadata.client import MetadataClient
from .metadata.resolver import MetadataResolver
from .metadata.session import ApiSession, require_session
from .metadata.source import RemoteQuery, fetch_records
from .reporting.formatter import (
    ReportRow,
    build_report_rows,
    render_report_csv,
    report_filename,
)

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

ProgressCallback = Callable[[str], None]


@dataclass(frozen=True)
class CsvInput:
    """Progress rows exported as CSV text."""

    text: str
    name: str = ""


@dataclass(frozen=True)
class MonthlyReport:
    """Finished report for one run."""

    csv_text: str
    filename: str
    rows: list[ReportRow] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)


def _notify(progress: ProgressCallback | None, message: str) -> None:
    if progress is not None:
        progress(message)


async def build_monthly_report(
    records: Sequence[InputRecord],
    session: ApiSession,
    client: httpx.AsyncClient,
    config: ReportConfig | None = None,
    *,
    progress: ProgressCallback | None = None,
    now: datetime | None = None,
) -> MonthlyReport:
    """Aggregate parsed records and render the named monthly report.

    Args:
        records: Parsed input records.
        session: Authenticated API session used for name lookups.
        client: HTTP client for the metadata service.
        config: Run settings; defaults to :class:`ReportConfig()`.
        progress: Optional callback receiving human-readable stage messages.
        now: Timestamp embedded in the filename; defaults to the current time.

    Raises:
        AuthRequired: ``session`` lacks a token.
    """
    config = config or ReportConfig()
    require_session(session)

    with tracer.start_as_current_span("extract_ids") as span:
        _notify(progress, "Extracting required IDs...")
        ids = extract_required_ids(records)
        required = ids.counts()
        span.set_attribute("record_count", len(records))
        _notify(
            progress,
            "Required IDs - members: {member}, products: {product}, "
            "courses: {course}, contents: {content}".format(**required),
        )

    with tracer.start_as_current_span("aggregate_monthly") as span:
        _notify(progress, "Aggregating by month...")
        aggregations = MonthlyAggregator().aggregate(records)
        span.set_attribute("aggregate_count", len(aggregations))
        _notify(progress, f"Aggregate keys: {len(aggregations)}")

    with tracer.start_as_current_span("resolve_names"):
        _notify(progress, "Resolving names...")
        metadata_client = MetadataClient(
            client, config.resolved_api_base_url, retry_attempts=config.retry_attempts
        )
        resolver = MetadataResolver(
            metadata_client,
            member_batch_size=config.member_batch_size,
            max_concurrency=config.max_concurrency,
        )
        names = await resolver.resolve_all(session, ids)
        resolved = names.counts()
        for family in ("course", "product", "member", "content"):
            _notify(
                progress,
                f"Resolved {family}s: {resolved[family]} / required: {required[family]}",
            )

    with tracer.start_as_current_span("format_report"):
        _notify(progress, "Exporting CSV...")
        rows = build_report_rows(aggregations, names)
        csv_text = render_report_csv(rows)

    stats = {
        "record_count": len(records),
        "aggregate_count": len(aggregations),
        "required": required,
        "resolved": resolved,
    }
    logger.info("report_built", **stats)
    return MonthlyReport(
        csv_text=csv_text, filename=report_filename(now), rows=rows, stats=stats
    )


async def _load_records(
    source: CsvInput | RemoteQuery,
    session: ApiSession,
    client: httpx.AsyncClient,
    config: ReportConfig,
    progress: ProgressCallback | None,
) -> list[InputRecord]:
    if isinstance(source, CsvInput):
        if source.name:
            _notify(progress, f"Input file: {source.name}")
        records = parse_csv_text(source.text)
        _notify(progress, f"Read {len(records)} rows")
        return records

    _notify(progress, "Fetching records from the record source...")
    raw_rows = await fetch_records(
        client,
        session,
        config.resolved_record_source_base_url,
        source,
        retry_attempts=config.retry_attempts,
    )
    _notify(progress, f"Fetched {len(raw_rows)} rows from the record source")
    return records_from_source_rows(raw_rows)


async def generate_monthly_report(
    source: CsvInput | RemoteQuery,
    identity: str,
    secret: str,
    config: ReportConfig | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    progress: ProgressCallback | None = None,
    now: datetime | None = None,
) -> MonthlyReport:
    """Run the whole pipeline for one user action.

    Authenticates once and reuses the session for the record fetch and the
    name lookups. When ``client`` is omitted a client is created and closed
    for this run.

    Raises:
        InvalidQueryError: ``source`` is a remote query with missing fields or
            an inverted date range.
        AuthFailed: The credentials were rejected.
        RecordSourceError: Remote records could not be fetched.
    """
    config = config or ReportConfig()
    if isinstance(source, RemoteQuery):
        source.validate()

    if client is None:
        async with httpx.AsyncClient(timeout=config.timeout_seconds) as owned_client:
            return await _run(source, identity, secret, config, owned_client, progress, now)
    return await _run(source, identity, secret, config, client, progress, now)


async def _run(
    source: CsvInput | RemoteQuery,
    identity: str,
    secret: str,
    config: ReportConfig,
    client: httpx.AsyncClient,
    progress: ProgressCallback | None,
    now: datetime | None,
) -> MonthlyReport:
    with tracer.start_as_current_span("monthly_report") as span:
        span.set_attribute("environment", config.environment)
        _notify(progress, "Authenticating...")
        session = await authenticate(
            client, config.resolved_api_base_url, identity, secret
        )
        _notify(progress, "Authenticated")

        records = await _load_records(source, session, client, config, progress)
        return await build_monthly_report(
            records, session, client, config, progress=progress, now=now
        )
