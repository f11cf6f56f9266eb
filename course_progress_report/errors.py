"""Error hierarchy for the course progress report pipeline.

Fatal errors abort the whole run and carry a human-readable message. Per-ID
metadata lookup failures are not errors at this level: the resolver absorbs
them and the affected names render blank.
"""


class ReportError(Exception):
    """Base exception for all fatal pipeline failures."""


class AuthRequired(ReportError):
    """A remote call was attempted without both bearer and member tokens."""

    def __init__(self, message: str = "Authentication is required before calling the API"):
        super().__init__(message)


class AuthFailed(ReportError):
    """The authentication exchange was rejected or returned a malformed body."""


class RecordSourceError(ReportError):
    """The remote record source could not deliver the requested rows."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidQueryError(ReportError, ValueError):
    """A remote record query was rejected before any request was issued."""
