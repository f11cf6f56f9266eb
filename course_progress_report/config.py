"""Run configuration for the course progress report.

Configuration is built programmatically by the caller for every run; nothing
is read from the environment.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Environment = Literal["dev", "qa", "staging", "production", "local"]

API_BASE_URLS: dict[str, str] = {
    "dev": "https://api.dev.skillflo.io/api/backoffice",
    "qa": "https://api.qa.skillflo.io/api/backoffice",
    "staging": "https://api.staging.skillflo.io/api/backoffice",
    "production": "https://api.skillflo.io/api/backoffice",
    "local": "http://localhost:3000/api/backoffice",
}

# The progress store is only reachable through a local tunnel in every environment.
RECORD_SOURCE_BASE_URLS: dict[str, str] = {
    name: "http://localhost:8084" for name in API_BASE_URLS
}

DEFAULT_MEMBER_BATCH_SIZE = 50


class ReportConfig(BaseModel):
    """Settings for one report run.

    Attributes:
        environment: Backoffice environment to talk to.
        api_base_url: Overrides the environment's backoffice URL.
        record_source_base_url: Overrides the environment's progress store URL.
        member_batch_size: Member IDs per batched lookup.
        max_concurrency: Upper bound on in-flight metadata requests.
        timeout_seconds: Per-request HTTP timeout.
        retry_attempts: Attempts for GET requests failing at the transport level.
    """

    environment: Environment = "staging"
    api_base_url: str | None = None
    record_source_base_url: str | None = None
    member_batch_size: int = Field(default=DEFAULT_MEMBER_BATCH_SIZE, ge=1)
    max_concurrency: int = Field(default=8, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)

    @property
    def resolved_api_base_url(self) -> str:
        return (self.api_base_url or API_BASE_URLS[self.environment]).rstrip("/")

    @property
    def resolved_record_source_base_url(self) -> str:
        return (
            self.record_source_base_url or RECORD_SOURCE_BASE_URLS[self.environment]
        ).rstrip("/")
