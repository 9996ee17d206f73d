"""Application configuration loaded from environment variables."""

from __future__ import annotations

from typing import Self
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Values shipped in example env files; treated as "not configured".
_PLACEHOLDER_MARKERS: tuple[str, ...] = ("your-", "placeholder")


class RentalSettings(BaseSettings):
    """rentalops application settings.

    All values can be overridden via environment variables prefixed with
    ``RENTAL_`` (e.g. ``RENTAL_DEBUG=true``) or through a ``.env`` file in
    the working directory.  The Supabase credentials additionally accept
    the conventional ``SUPABASE_*`` and ``NEXT_PUBLIC_SUPABASE_*`` names so
    an existing frontend ``.env`` can be reused unchanged.
    """

    model_config = SettingsConfigDict(
        env_prefix="RENTAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Hosted database project (PostgREST + GoTrue behind one base URL).
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("RENTAL_SUPABASE_URL", "SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    )
    supabase_anon_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(
            "RENTAL_SUPABASE_ANON_KEY", "SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"
        ),
    )
    supabase_service_role_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("RENTAL_SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_ROLE_KEY"),
    )

    # Timeout (seconds) for every outbound call to the hosted backend.
    request_timeout: float = 10.0

    # Local JSON file used when the hosted backend is unavailable.
    fallback_store_path: str = "temp-invoices/invoices.json"

    # Session handling.
    session_refresh_margin_seconds: int = 60
    login_path: str = "/auth"
    cookie_secure: bool = True

    # Origins permitted by the CORS middleware.
    cors_origins: list[str] = ["http://localhost:3000"]

    # Whether CORS responses include credentials (cookies, auth headers).
    cors_allow_credentials: bool = True

    # Emit single-line JSON log records instead of plain text.
    structured_logging: bool = False

    @model_validator(mode="after")
    def _validate_cors_credentials_not_wildcard(self) -> Self:
        """Reject wildcard origins when credentials are enabled.

        Browsers refuse ``Access-Control-Allow-Origin: *`` together with
        ``Access-Control-Allow-Credentials: true``, and session cookies are
        the only credential this service accepts.
        """
        if self.cors_allow_credentials and "*" in self.cors_origins:
            raise ValueError(
                "Cannot use wildcard origins with credentials. "
                "Specify explicit origins instead of '*' when "
                "cors_allow_credentials=True."
            )
        return self

    @property
    def is_supabase_configured(self) -> bool:
        """Return ``True`` when a usable project URL and anon key are set."""
        url = self.supabase_url
        key = self.supabase_anon_key.get_secret_value()
        if not url or not key:
            return False
        if any(marker in url for marker in _PLACEHOLDER_MARKERS):
            return False
        return "your-" not in key

    @property
    def has_service_role(self) -> bool:
        return self.is_supabase_configured and bool(self.supabase_service_role_key.get_secret_value())

    @property
    def project_ref(self) -> str:
        """First host label of the project URL (``abcd`` for ``abcd.supabase.co``)."""
        host = urlparse(self.supabase_url).hostname or ""
        return host.split(".", 1)[0] or "local"

    @property
    def session_cookie_name(self) -> str:
        return f"sb-{self.project_ref}-auth-token"


def load_settings() -> RentalSettings:
    """Construct settings from the current environment."""
    return RentalSettings()
