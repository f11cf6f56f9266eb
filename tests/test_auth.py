import json

import httpx
import pytest

from course_progress_report.errors import AuthFailed, AuthRequired
from course_progress_report.metadata import ApiSession, authenticate
from tests.fake_backoffice import API_BASE, BEARER, MEMBER_TOKEN


@pytest.mark.asyncio
async def test_authenticate_returns_both_tokens(http_client, backoffice):
    session = await authenticate(http_client, API_BASE, "admin@example.com", "secret")

    assert session == ApiSession(bearer_token=BEARER, member_token=MEMBER_TOKEN)
    assert [r.url.path for r in backoffice.requests] == [
        "/api/backoffice/auth",
        "/api/backoffice/member/login",
        "/api/backoffice/member/token",
    ]

    auth_request, login_request, token_request = backoffice.requests
    assert json.loads(auth_request.content) == {
        "name": "admin@example.com",
        "state": "COMPLETED",
        "extras": {"password": "secret"},
    }
    assert auth_request.headers["x-bpo-member-token"] == ""
    assert login_request.url.params["type"] == "ADMIN"
    assert login_request.url.params["limit"] == "1"
    assert json.loads(token_request.content) == {"memberId": 7}


@pytest.mark.asyncio
async def test_bad_credentials_raise_auth_failed(http_client):
    with pytest.raises(AuthFailed):
        await authenticate(http_client, API_BASE, "admin@example.com", "wrong")


@pytest.mark.asyncio
async def test_missing_expiry_is_malformed(http_client, backoffice):
    backoffice.auth_payload = {"access_token": BEARER}

    with pytest.raises(AuthFailed, match="Invalid access token response"):
        await authenticate(http_client, API_BASE, "admin@example.com", "secret")


@pytest.mark.asyncio
async def test_unknown_member_raises_auth_failed(http_client, backoffice):
    backoffice.login_payload = []

    with pytest.raises(AuthFailed):
        await authenticate(http_client, API_BASE, "admin@example.com", "secret")


@pytest.mark.asyncio
async def test_missing_member_token_raises_auth_failed(http_client, backoffice):
    backoffice.member_token_payload = {}

    with pytest.raises(AuthFailed, match="Invalid member token response"):
        await authenticate(http_client, API_BASE, "admin@example.com", "secret")


@pytest.mark.asyncio
async def test_unreachable_api_raises_auth_failed():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
        with pytest.raises(AuthFailed):
            await authenticate(client, API_BASE, "admin@example.com", "secret")


def test_session_headers_carry_both_tokens(session):
    assert session.headers() == {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {BEARER}",
        "x-bpo-member-token": MEMBER_TOKEN,
    }


@pytest.mark.parametrize(
    "bearer, member",
    [("", MEMBER_TOKEN), (BEARER, ""), ("", "")],
)
def test_incomplete_session_requires_auth(bearer, member):
    session = ApiSession(bearer_token=bearer, member_token=member)

    assert session.is_authenticated is False
    with pytest.raises(AuthRequired):
        session.headers()


def test_session_repr_hides_tokens(session):
    assert BEARER not in repr(session)
    assert MEMBER_TOKEN not in repr(session)
