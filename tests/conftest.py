"""Shared fixtures: sample progress data and a fake backoffice API."""

import httpx
import pytest
import pytest_asyncio

from course_progress_report.config import ReportConfig
from course_progress_report.metadata.session import ApiSession
from tests.fake_backoffice import (
    API_BASE,
    BEARER,
    MEMBER_TOKEN,
    SOURCE_BASE,
    FakeBackoffice,
)


@pytest.fixture
def backoffice():
    office = FakeBackoffice()
    office.members = {
        1: {"id": 1, "name": "alice@example.com", "extras": {"name": "Alice"}},
        2: {"id": 2, "name": "bob@example.com", "extras": {"name": "Bob"}},
    }
    office.products = {
        10: {"id": 10, "name": "internal-product", "extras": {"publicName": "Data 101"}},
    }
    office.courses = {
        20: {"id": 20, "name": "course-20", "publicName": "Python Basics"},
    }
    office.contents = {
        30: {"id": 30, "name": "Intro Clip"},
        31: {"id": 31, "name": "Second Clip"},
    }
    return office


@pytest_asyncio.fixture
async def http_client(backoffice):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(backoffice.handler)
    ) as client:
        yield client


@pytest.fixture
def session():
    return ApiSession(bearer_token=BEARER, member_token=MEMBER_TOKEN)


@pytest.fixture
def config():
    return ReportConfig(
        api_base_url=API_BASE,
        record_source_base_url=SOURCE_BASE,
        member_batch_size=50,
        retry_attempts=1,
    )


@pytest.fixture
def sample_csv():
    return "\n".join(
        [
            "targetId,productId,courseId,courseContentId,dailyDate,cumulativePlayTime,totalPlayTime,totalContentPlayTime",
            "1,10,20,30,2024-03-05,60,30,100",
            "1,10,20,30,2024-03-28,40,20,100",
            "",
            "2,10,20,31,2024-03-10,10,200,120",
            "1,10,20,30,2024-04-01,5,5,100",
            "3,10,20,30,not-a-date,1,1,1",
        ]
    )
