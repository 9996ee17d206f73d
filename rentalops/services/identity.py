"""Async client for the hosted identity provider (GoTrue ``/auth/v1``).

The application never issues tokens itself.  It forwards credentials to
the provider, receives a token pair, and carries that pair in cookies.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Raised when the identity provider rejects a request or is unreachable.

    ``status_code`` is ``None`` for transport failures.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_rejection(self) -> bool:
        """True when the provider answered and refused the credentials."""
        return self.status_code is not None and 400 <= self.status_code < 500


@dataclass(frozen=True)
class Session:
    """Token pair plus the identity it belongs to."""

    access_token: str
    refresh_token: str
    expires_at: int
    user: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Session:
        """Build a session from a token-endpoint response or a decoded cookie."""
        try:
            access_token = payload["access_token"]
            refresh_token = payload["refresh_token"]
        except KeyError as exc:
            raise IdentityError(f"Session payload is missing {exc.args[0]}") from exc
        expires_at = payload.get("expires_at")
        if expires_at is None:
            expires_at = int(time.time()) + int(payload.get("expires_in") or 3600)
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(expires_at),
            user=payload.get("user") or {},
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "token_type": "bearer",
            "user": self.user,
        }

    @property
    def user_id(self) -> str | None:
        return self.user.get("id")

    @property
    def email(self) -> str | None:
        return self.user.get("email")

    def expires_within(self, seconds: int, *, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return self.expires_at - current <= seconds

    def with_user(self, user: dict[str, Any]) -> Session:
        return replace(self, user=user)


class IdentityClient:
    """Thin wrapper over the provider's REST endpoints.

    Parameters
    ----------
    http:
        Shared connection pool whose ``base_url`` is the project URL.
    api_key:
        Project anon key, sent as ``apikey`` on every request.
    """

    def __init__(self, http: httpx.AsyncClient, api_key: str) -> None:
        self._http = http
        self._api_key = api_key

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
    ) -> Any:
        headers = {"apikey": self._api_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            response = await self._http.request(method, f"/auth/v1{path}", json=json, params=params, headers=headers)
        except httpx.RequestError as exc:
            logger.warning("Identity provider request %s failed: %s", path, exc)
            raise IdentityError(f"Identity provider unreachable: {exc}") from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            if not isinstance(body, dict):
                body = {}
            message = body.get("error_description") or body.get("msg") or body.get("message") or response.reason_phrase
            raise IdentityError(message or f"HTTP {response.status_code}", status_code=response.status_code)

        if not response.content:
            return None
        return response.json()

    async def get_user(self, access_token: str) -> dict[str, Any]:
        """Validate *access_token* and return the user it belongs to."""
        return await self._call("GET", "/user", access_token=access_token)

    async def refresh(self, refresh_token: str) -> Session:
        payload = await self._call(
            "POST", "/token", params={"grant_type": "refresh_token"}, json={"refresh_token": refresh_token}
        )
        return Session.from_payload(payload)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        payload = await self._call(
            "POST", "/token", params={"grant_type": "password"}, json={"email": email, "password": password}
        )
        return Session.from_payload(payload)

    async def exchange_code(self, auth_code: str, code_verifier: str) -> Session:
        """Complete a PKCE flow started by the browser."""
        payload = await self._call(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": code_verifier},
        )
        return Session.from_payload(payload)

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        """Register a user.

        Returns the raw provider payload; it carries a session only when
        email confirmation is disabled for the project.
        """
        return await self._call("POST", "/signup", json={"email": email, "password": password, "data": metadata or {}})

    async def sign_out(self, access_token: str) -> None:
        await self._call("POST", "/logout", access_token=access_token)

    async def health_check(self) -> bool:
        """Return ``True`` if the provider answers its health endpoint."""
        try:
            await self._call("GET", "/health")
        except IdentityError:
            return False
        return True
