"""Tests for RentalSettings.

Covers:
- defaults
- conventional SUPABASE_* / NEXT_PUBLIC_* variable names
- placeholder detection and service-role availability
- project ref and session cookie name
- wildcard CORS with credentials rejected
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rentalops.config import RentalSettings

_ENV_NAMES = (
    "RENTAL_SUPABASE_URL",
    "RENTAL_SUPABASE_ANON_KEY",
    "RENTAL_SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "NEXT_PUBLIC_SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_ANON_KEY",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> pytest.MonkeyPatch:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestSettings:

    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = RentalSettings()

        assert settings.port == 8000
        assert settings.fallback_store_path == "temp-invoices/invoices.json"
        assert settings.login_path == "/auth"
        assert settings.is_supabase_configured is False
        assert settings.has_service_role is False
        assert settings.session_cookie_name == "sb-local-auth-token"

    def test_frontend_variable_names(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://abcd.supabase.co")
        clean_env.setenv("NEXT_PUBLIC_SUPABASE_ANON_KEY", "anon")
        clean_env.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")

        settings = RentalSettings()

        assert settings.is_supabase_configured
        assert settings.has_service_role
        assert settings.project_ref == "abcd"
        assert settings.session_cookie_name == "sb-abcd-auth-token"

    def test_prefixed_name_takes_precedence(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("RENTAL_SUPABASE_URL", "https://first.supabase.co")
        clean_env.setenv("SUPABASE_URL", "https://second.supabase.co")

        assert RentalSettings().supabase_url == "https://first.supabase.co"

    @pytest.mark.parametrize(
        ("url", "key"),
        [
            ("https://your-project.supabase.co", "anon"),
            ("https://placeholder.supabase.co", "anon"),
            ("https://abcd.supabase.co", "your-anon-key"),
            ("https://abcd.supabase.co", ""),
        ],
    )
    def test_placeholders_are_not_configured(self, clean_env: pytest.MonkeyPatch, url: str, key: str) -> None:
        settings = RentalSettings(supabase_url=url, supabase_anon_key=key)
        assert settings.is_supabase_configured is False

    def test_wildcard_origin_with_credentials(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(ValidationError):
            RentalSettings(cors_origins=["*"])

    def test_wildcard_origin_without_credentials(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = RentalSettings(cors_origins=["*"], cors_allow_credentials=False)
        assert settings.cors_origins == ["*"]
