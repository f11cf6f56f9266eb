from datetime import datetime, timezone

import httpx
import pytest

from course_progress_report import (
    AuthFailed,
    AuthRequired,
    CsvInput,
    InvalidQueryError,
    RecordSourceError,
    RemoteQuery,
    build_monthly_report,
    generate_monthly_report,
)
from course_progress_report.foundation import parse_csv_text
from course_progress_report.metadata import ApiSession
from course_progress_report.reporting import REPORT_COLUMNS

NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

EXPECTED_LINES = [
    ",".join(REPORT_COLUMNS),
    "2024-03,1,alice@example.com,Alice,10,Data 101,20,Python Basics,30,Intro Clip,"
    "00:01:40,00:00:50,00:01:40,50.00%,2",
    "2024-04,1,alice@example.com,Alice,10,Data 101,20,Python Basics,30,Intro Clip,"
    "00:00:05,00:00:05,00:01:40,5.00%,1",
    "2024-03,2,bob@example.com,Bob,10,Data 101,20,Python Basics,31,Second Clip,"
    "00:00:10,00:03:20,00:02:00,100.00%,1",
]


@pytest.fixture
def query():
    return RemoteQuery("3", "10", "20", "2024-03-01", "2024-04-30")


@pytest.mark.asyncio
async def test_csv_report_end_to_end(http_client, config, sample_csv):
    messages = []

    report = await generate_monthly_report(
        CsvInput(sample_csv, name="progress.csv"),
        "admin@example.com",
        "secret",
        config,
        client=http_client,
        progress=messages.append,
        now=NOW,
    )

    assert report.csv_text.splitlines() == EXPECTED_LINES
    assert report.filename == "course_clip_progress_monthly_2024-05-01T09-30-00.csv"
    assert len(report.rows) == 3
    assert report.stats["record_count"] == 5
    assert report.stats["aggregate_count"] == 3
    assert report.stats["required"]["member"] == 3
    assert report.stats["resolved"]["member"] == 2
    assert messages[0] == "Authenticating..."
    assert "Input file: progress.csv" in messages
    assert "Read 5 rows" in messages
    assert "Aggregate keys: 3" in messages
    assert "Resolved members: 2 / required: 3" in messages
    assert messages[-1] == "Exporting CSV..."


@pytest.mark.asyncio
async def test_remote_report_end_to_end(http_client, config, backoffice, query):
    backoffice.progress_payload = [
        {
            "targetId": 1,
            "productId": 10,
            "courseId": 20,
            "courseContentId": 30,
            "dailyDate": "2024-03-05",
            "cumulativePlayTime": 60,
            "totalPlayTime": 30,
            "totalContentPlayTime": 100,
        },
        {
            "targetId": 1,
            "productId": 10,
            "courseId": 20,
            "courseContentId": 30,
            "dailyDate": "2024-03-28",
            "cumulativePlayTime": 40,
            "totalPlayTime": 20,
            "totalContentPlayTime": 100,
        },
    ]

    report = await generate_monthly_report(
        query, "admin@example.com", "secret", config, client=http_client, now=NOW
    )

    assert report.csv_text.splitlines() == EXPECTED_LINES[:2]
    assert len(backoffice.requests_to("/api/backoffice/auth")) == 1


@pytest.mark.asyncio
async def test_member_batch_failure_still_produces_report(
    http_client, config, backoffice, sample_csv
):
    backoffice.failing_member_ids = {1}

    report = await generate_monthly_report(
        CsvInput(sample_csv), "admin@example.com", "secret", config, client=http_client
    )

    assert [row.memberEmail for row in report.rows] == ["", "", ""]
    assert [row.courseName for row in report.rows] == ["Python Basics"] * 3


@pytest.mark.asyncio
async def test_bad_credentials_abort_the_run(http_client, config, sample_csv, backoffice):
    with pytest.raises(AuthFailed):
        await generate_monthly_report(
            CsvInput(sample_csv), "admin@example.com", "wrong", config, client=http_client
        )

    assert backoffice.requests_to("/api/backoffice/member/ids") == []


@pytest.mark.asyncio
async def test_record_source_failure_aborts_the_run(http_client, config, backoffice, query):
    backoffice.progress_status = 500

    with pytest.raises(RecordSourceError):
        await generate_monthly_report(
            query, "admin@example.com", "secret", config, client=http_client
        )

    assert backoffice.requests_to("/api/backoffice/member/ids") == []


@pytest.mark.asyncio
async def test_non_json_record_body_aborts_the_run(http_client, config, backoffice, query):
    backoffice.progress_body = b"<html>proxy error</html>"

    with pytest.raises(RecordSourceError):
        await generate_monthly_report(
            query, "admin@example.com", "secret", config, client=http_client
        )

    assert backoffice.requests_to("/api/backoffice/member/ids") == []


@pytest.mark.asyncio
async def test_invalid_query_is_rejected_before_any_request(http_client, config, backoffice):
    query = RemoteQuery("3", "10", "20", "2024-05-01", "2024-04-01")

    with pytest.raises(InvalidQueryError):
        await generate_monthly_report(
            query, "admin@example.com", "secret", config, client=http_client
        )

    assert backoffice.requests == []


@pytest.mark.asyncio
async def test_build_report_requires_session(http_client, config, sample_csv):
    with pytest.raises(AuthRequired):
        await build_monthly_report(
            parse_csv_text(sample_csv),
            ApiSession(bearer_token="", member_token=""),
            http_client,
            config,
        )


@pytest.mark.asyncio
async def test_build_report_from_records(http_client, config, session, sample_csv):
    report = await build_monthly_report(
        parse_csv_text(sample_csv), session, http_client, config, now=NOW
    )

    assert report.csv_text.splitlines() == EXPECTED_LINES


@pytest.mark.asyncio
async def test_owned_client_is_created_when_none_is_given(monkeypatch, backoffice, config, sample_csv):
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(backoffice.handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)

    report = await generate_monthly_report(
        CsvInput(sample_csv), "admin@example.com", "secret", config, now=NOW
    )

    assert report.csv_text.splitlines() == EXPECTED_LINES
