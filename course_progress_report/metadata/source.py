"""Remote record source for daily course-content progress rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx
import structlog

from ..errors import InvalidQueryError, RecordSourceError
from .client import get_with_retry
from .session import ApiSession, require_session

logger = structlog.get_logger(__name__)

PROGRESS_PATH = "/api/backoffice/course-content/progress"


@dataclass(frozen=True)
class RemoteQuery:
    """Filter for fetching progress rows from the record source.

    Dates are ISO ``YYYY-MM-DD`` strings and the range is inclusive.
    """

    group_id: str
    product_id: str
    course_id: str
    start_date: str
    end_date: str

    def validate(self) -> "RemoteQuery":
        missing = [
            name
            for name in ("group_id", "product_id", "course_id", "start_date", "end_date")
            if not str(getattr(self, name) or "").strip()
        ]
        if missing:
            raise InvalidQueryError(f"Missing query fields: {', '.join(missing)}")

        try:
            start = date.fromisoformat(str(self.start_date)[:10])
            end = date.fromisoformat(str(self.end_date)[:10])
        except ValueError as e:
            raise InvalidQueryError(f"Invalid query date: {e}") from e
        if start > end:
            raise InvalidQueryError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        return self

    def as_params(self) -> dict[str, str]:
        return {
            "groupId": str(self.group_id),
            "productId": str(self.product_id),
            "courseId": str(self.course_id),
            "startedAt": str(self.start_date),
            "endedAt": str(self.end_date),
        }


async def fetch_records(
    client: httpx.AsyncClient,
    session: ApiSession,
    base_url: str,
    query: RemoteQuery,
    *,
    retry_attempts: int = 3,
) -> list[dict[str, Any]]:
    """Fetch raw progress rows matching ``query``.

    An empty body or a JSON body that is not an array yields an empty list.

    Raises:
        AuthRequired: ``session`` lacks a token.
        InvalidQueryError: ``query`` is incomplete or its range is inverted.
        RecordSourceError: The source is unreachable, answers with an error
            status or returns a body that is not JSON.
    """
    require_session(session)
    query.validate()
    url = f"{base_url.rstrip('/')}{PROGRESS_PATH}"
    try:
        response = await get_with_retry(
            client, url, session, params=query.as_params(), attempts=retry_attempts
        )
    except httpx.HTTPError as e:
        logger.error("record_fetch_failed", error=str(e))
        raise RecordSourceError(f"Record source request failed: {e}") from e

    if response.is_error:
        logger.error("record_fetch_rejected", status_code=response.status_code)
        raise RecordSourceError(
            f"Record source call failed: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    if not response.content.strip():
        return []
    try:
        payload = response.json()
    except ValueError as e:
        logger.error("record_payload_not_json", status_code=response.status_code)
        raise RecordSourceError(
            "Record source returned a non-JSON body", status_code=response.status_code
        ) from e

    if not isinstance(payload, list):
        return []
    logger.info("records_fetched", count=len(payload))
    return payload
