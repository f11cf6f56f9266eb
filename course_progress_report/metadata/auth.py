"""Credential exchange with the backoffice API.

The handshake has three steps: exchange credentials for a bearer token,
look up the admin member behind the credentials, then mint a member-scoped
token for that member. The result is an :class:`ApiSession`.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..errors import AuthFailed
from .session import MEMBER_TOKEN_HEADER, ApiSession

logger = structlog.get_logger(__name__)

_BASE_HEADERS = {
    "accept": "application/json, text/plain, */*",
    MEMBER_TOKEN_HEADER: "",
}


async def _request_json(
    client: httpx.AsyncClient, method: str, url: str, step: str, **kwargs: Any
) -> Any:
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        logger.warning("auth_request_failed", step=step, error=str(e))
        raise AuthFailed(f"Authentication failed during {step}: {e}") from e

    if response.is_error:
        logger.warning("auth_rejected", step=step, status_code=response.status_code)
        raise AuthFailed(
            f"Authentication failed during {step} (HTTP {response.status_code})"
        )

    try:
        return response.json()
    except ValueError as e:
        raise AuthFailed(f"Malformed response during {step}") from e


async def fetch_access_token(
    client: httpx.AsyncClient, base_url: str, identity: str, secret: str
) -> str:
    payload = {"name": identity, "state": "COMPLETED", "extras": {"password": secret}}
    data = await _request_json(
        client,
        "POST",
        f"{base_url}/auth",
        "token exchange",
        json=payload,
        headers={**_BASE_HEADERS, "content-type": "application/json"},
    )
    if not isinstance(data, dict) or not data.get("access_token") or not data.get("expires_in"):
        raise AuthFailed("Invalid access token response")
    return str(data["access_token"])


async def fetch_admin_member_id(
    client: httpx.AsyncClient, base_url: str, identity: str, access_token: str
) -> int:
    data = await _request_json(
        client,
        "GET",
        f"{base_url}/member/login",
        "member lookup",
        params={"name": identity, "type": "ADMIN", "state": "NORMAL", "limit": "1"},
        headers={**_BASE_HEADERS, "authorization": f"bearer {access_token}"},
    )
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise AuthFailed("No member found for the supplied credentials")
    member_id = data[0].get("id")
    if member_id in (None, ""):
        raise AuthFailed("Member lookup response has no id")
    return member_id


async def fetch_member_token(
    client: httpx.AsyncClient, base_url: str, member_id: int, access_token: str
) -> str:
    data = await _request_json(
        client,
        "POST",
        f"{base_url}/member/token",
        "member token",
        json={"memberId": member_id},
        headers={
            **_BASE_HEADERS,
            "authorization": f"bearer {access_token}",
            "content-type": "application/json",
        },
    )
    if not isinstance(data, dict) or not data.get("access_token"):
        raise AuthFailed("Invalid member token response")
    return str(data["access_token"])


async def authenticate(
    client: httpx.AsyncClient, base_url: str, identity: str, secret: str
) -> ApiSession:
    """Exchange credentials for an authenticated :class:`ApiSession`.

    Args:
        client: HTTP client used for the three handshake calls.
        base_url: Backoffice API root, e.g. ``https://api.skillflo.io/api/backoffice``.
        identity: Login name (email) of an admin member.
        secret: Password for ``identity``.

    Raises:
        AuthFailed: Any step is rejected, unreachable or returns a malformed body.
    """
    base_url = base_url.rstrip("/")
    access_token = await fetch_access_token(client, base_url, identity, secret)
    member_id = await fetch_admin_member_id(client, base_url, identity, access_token)
    member_token = await fetch_member_token(client, base_url, member_id, access_token)
    logger.info("authenticated", member_id=member_id)
    return ApiSession(bearer_token=access_token, member_token=member_token)
