"""HTTP access to the backoffice metadata endpoints."""

from __future__ import annotations

from typing import Any, Iterable

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .names import ENTITY_PATHS, EntityType, MemberProfile, members_from_payload
from .session import ApiSession, require_session

logger = structlog.get_logger(__name__)


async def get_with_retry(
    client: httpx.AsyncClient,
    url: str,
    session: ApiSession,
    *,
    params: dict[str, str] | None = None,
    attempts: int = 3,
) -> httpx.Response:
    """Authorised GET that retries transport failures with exponential backoff.

    HTTP error statuses are returned to the caller untouched.

    Raises:
        AuthRequired: ``session`` lacks a token; no request is sent.
        httpx.TransportError: The last attempt still failed to connect.
    """
    headers = require_session(session).headers()

    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.2, max=2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get() -> httpx.Response:
        return await client.get(url, params=params, headers=headers)

    return await _get()


class MetadataClient:
    """Thin wrapper over the metadata endpoints of the backoffice API.

    The client holds no tokens; every call takes the :class:`ApiSession`
    explicitly.
    """

    def __init__(
        self, client: httpx.AsyncClient, base_url: str, *, retry_attempts: int = 3
    ) -> None:
        self._client = client
        self.base_url = base_url.rstrip("/")
        self.retry_attempts = retry_attempts

    async def fetch_by_id(
        self, session: ApiSession, entity_type: EntityType, entity_id: int
    ) -> dict[str, Any] | None:
        """Fetch one product, course or content record.

        Returns ``None`` when the entity is missing or the call fails for any
        reason other than a missing session.
        """
        require_session(session)
        url = f"{self.base_url}{ENTITY_PATHS[entity_type]}/{entity_id}"
        try:
            response = await get_with_retry(
                self._client, url, session, attempts=self.retry_attempts
            )
        except httpx.HTTPError as e:
            logger.warning(
                "entity_lookup_failed",
                entity_type=entity_type.value,
                entity_id=entity_id,
                error=str(e),
            )
            return None

        if response.is_error:
            logger.debug(
                "entity_not_available",
                entity_type=entity_type.value,
                entity_id=entity_id,
                status_code=response.status_code,
            )
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning(
                "entity_payload_malformed",
                entity_type=entity_type.value,
                entity_id=entity_id,
            )
            return None
        return payload if isinstance(payload, dict) else None

    async def fetch_members(
        self, session: ApiSession, member_ids: Iterable[int]
    ) -> dict[int, MemberProfile]:
        """Fetch one batch of members in a single call.

        Raises:
            AuthRequired: ``session`` lacks a token.
            httpx.HTTPError: The call failed or returned an error status.
            ValueError: The body is not JSON.
        """
        ids = ",".join(str(member_id) for member_id in member_ids)
        response = await get_with_retry(
            self._client,
            f"{self.base_url}/member/ids",
            session,
            params={"ids": ids},
            attempts=self.retry_attempts,
        )
        response.raise_for_status()
        return members_from_payload(response.json())
