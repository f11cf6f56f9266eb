"""Authenticated API session values.

A session is an immutable pair of tokens produced by
:func:`~course_progress_report.metadata.auth.authenticate` and passed
explicitly to every remote call.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import AuthRequired

MEMBER_TOKEN_HEADER = "x-bpo-member-token"


@dataclass(frozen=True)
class ApiSession:
    """Bearer and member tokens for the backoffice API."""

    bearer_token: str = field(repr=False)
    member_token: str = field(repr=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.bearer_token) and bool(self.member_token)

    def require(self) -> "ApiSession":
        """Return ``self`` or raise :class:`AuthRequired` if a token is missing."""

        if not self.is_authenticated:
            raise AuthRequired()
        return self

    def headers(self) -> dict[str, str]:
        self.require()
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.bearer_token}",
            MEMBER_TOKEN_HEADER: self.member_token,
        }


def require_session(session: ApiSession | None) -> ApiSession:
    if session is None:
        raise AuthRequired()
    return session.require()
