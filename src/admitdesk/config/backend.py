"""Backend (REST/RPC/storage) configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

BACKEND_TIMEOUT_SECONDS: Final[float] = 20.0
APPLICATION_DOCUMENTS_BUCKET: Final[str] = "application-documents"
STATUS_NOTIFICATION_FUNCTION: Final[str] = "send-application-update"


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Identity of the signed-in staff member, as far as the pipeline needs it."""

    access_token: str | None = None
    tenant_id: str | None = None
    user_id: str | None = None


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Holds the hosted backend endpoint, credentials and transport settings."""

    url: str
    api_key: str
    resilience: ResilienceConfig
    session: SessionContext = field(default_factory=SessionContext)
    documents_bucket: str = APPLICATION_DOCUMENTS_BUCKET
    status_notification_function: str = STATUS_NOTIFICATION_FUNCTION

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    @property
    def storage_url(self) -> str:
        return f"{self.url.rstrip('/')}/storage/v1"

    @property
    def functions_url(self) -> str:
        return f"{self.url.rstrip('/')}/functions/v1"

    def auth_headers(self) -> dict[str, str]:
        token = self.session.access_token or self.api_key
        return {"apikey": self.api_key, "Authorization": f"Bearer {token}"}


def default_backend_resilience(url: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="backend",
        base_url=url.rstrip("/"),
        timeout_seconds=BACKEND_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    )


def get_backend_config(*, resilience: ResilienceConfig | None = None) -> BackendConfig:
    values = require_env_vars(("ADMITDESK_BACKEND_URL", "ADMITDESK_API_KEY"))
    url = values["ADMITDESK_BACKEND_URL"].strip()
    session = SessionContext(
        access_token=optional_env_var("ADMITDESK_ACCESS_TOKEN"),
        tenant_id=optional_env_var("ADMITDESK_TENANT_ID"),
        user_id=optional_env_var("ADMITDESK_USER_ID"),
    )
    return BackendConfig(
        url=url,
        api_key=values["ADMITDESK_API_KEY"].strip(),
        resilience=resilience or default_backend_resilience(url),
        session=session,
        documents_bucket=optional_env_var("ADMITDESK_DOCUMENTS_BUCKET")
        or APPLICATION_DOCUMENTS_BUCKET,
    )
