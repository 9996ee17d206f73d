"""Tests for the identity provider client, sessions and the session cookie codec.

Covers:
- Session payload parsing, expiry arithmetic
- IdentityClient endpoints, grant types and error mapping
- cookie encoding (base64- prefix), raw-JSON values, malformed values
- chunking of large sessions and expiry of stale chunks
"""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from starlette.responses import Response

from rentalops.services.identity import IdentityClient, IdentityError, Session
from rentalops.services.session_cookies import BASE64_PREFIX, MAX_CHUNK_SIZE, SessionCookieCodec

COOKIE = "sb-testproj-auth-token"


def _session(**overrides) -> Session:
    fields = {
        "access_token": "at",
        "refresh_token": "rt",
        "expires_at": 2_000_000_000,
        "user": {"id": "u1", "email": "a@example.com"},
    }
    fields.update(overrides)
    return Session(**fields)


def _identity(handler: Callable[[httpx.Request], httpx.Response]) -> tuple[IdentityClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    http = httpx.AsyncClient(base_url="https://testproj.supabase.co", transport=httpx.MockTransport(recording))
    return IdentityClient(http, "anon-key"), seen


def _set_cookie_headers(response: Response) -> list[str]:
    return [v.decode("latin-1") for k, v in response.raw_headers if k == b"set-cookie"]


class TestSession:
    """Session value object."""

    def test_from_payload_with_expires_at(self) -> None:
        session = Session.from_payload(
            {"access_token": "at", "refresh_token": "rt", "expires_at": 123, "user": {"id": "u1"}}
        )
        assert session.expires_at == 123
        assert session.user_id == "u1"
        assert session.email is None

    def test_from_payload_derives_expiry_from_expires_in(self) -> None:
        session = Session.from_payload({"access_token": "at", "refresh_token": "rt", "expires_in": 60})
        assert session.expires_within(61)
        assert not session.expires_within(0, now=session.expires_at - 30)

    def test_missing_token_is_an_error(self) -> None:
        with pytest.raises(IdentityError, match="refresh_token"):
            Session.from_payload({"access_token": "at"})

    def test_expires_within(self) -> None:
        session = _session(expires_at=1_000)
        assert session.expires_within(60, now=950)
        assert not session.expires_within(60, now=900)

    def test_with_user_keeps_tokens(self) -> None:
        session = _session().with_user({"id": "u2"})
        assert session.user_id == "u2"
        assert session.access_token == "at"


class TestIdentityClient:
    """Provider endpoints."""

    @pytest.mark.asyncio
    async def test_get_user_sends_bearer(self) -> None:
        client, seen = _identity(lambda r: httpx.Response(200, json={"id": "u1"}))

        user = await client.get_user("at")

        assert user == {"id": "u1"}
        assert seen[0].url.path == "/auth/v1/user"
        assert seen[0].headers["authorization"] == "Bearer at"
        assert seen[0].headers["apikey"] == "anon-key"

    @pytest.mark.asyncio
    async def test_refresh_uses_refresh_grant(self) -> None:
        client, seen = _identity(
            lambda r: httpx.Response(
                200, json={"access_token": "new", "refresh_token": "rt2", "expires_in": 3600, "user": {"id": "u1"}}
            )
        )

        session = await client.refresh("rt")

        assert session.access_token == "new"
        assert seen[0].url.params["grant_type"] == "refresh_token"
        assert json.loads(seen[0].content) == {"refresh_token": "rt"}

    @pytest.mark.asyncio
    async def test_password_sign_in(self) -> None:
        client, seen = _identity(lambda r: httpx.Response(200, json={"access_token": "at", "refresh_token": "rt"}))

        await client.sign_in_with_password("a@example.com", "pw")

        assert seen[0].url.params["grant_type"] == "password"

    @pytest.mark.asyncio
    async def test_code_exchange_uses_pkce_grant(self) -> None:
        client, seen = _identity(lambda r: httpx.Response(200, json={"access_token": "at", "refresh_token": "rt"}))

        await client.exchange_code("code-1", "verifier-1")

        assert seen[0].url.params["grant_type"] == "pkce"
        assert json.loads(seen[0].content) == {"auth_code": "code-1", "code_verifier": "verifier-1"}

    @pytest.mark.asyncio
    async def test_rejection_carries_provider_message(self) -> None:
        client, _ = _identity(
            lambda r: httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login"})
        )

        with pytest.raises(IdentityError) as exc_info:
            await client.sign_in_with_password("a@example.com", "bad")

        assert exc_info.value.message == "Invalid login"
        assert exc_info.value.is_rejection

    @pytest.mark.asyncio
    async def test_server_error_is_not_rejection(self) -> None:
        client, _ = _identity(lambda r: httpx.Response(503, text="down"))

        with pytest.raises(IdentityError) as exc_info:
            await client.get_user("at")

        assert not exc_info.value.is_rejection

    @pytest.mark.asyncio
    async def test_sign_out_with_empty_body(self) -> None:
        client, seen = _identity(lambda r: httpx.Response(204))
        assert await client.sign_out("at") is None
        assert seen[0].url.path == "/auth/v1/logout"

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        healthy, _ = _identity(lambda r: httpx.Response(200, json={"version": "v2"}))
        assert await healthy.health_check() is True

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        unreachable, _ = _identity(refuse)
        assert await unreachable.health_check() is False


class TestCookieEncoding:
    """Value encoding and decoding."""

    def test_encode_uses_prefix_and_no_padding(self) -> None:
        value = SessionCookieCodec.encode(_session())
        assert value.startswith(BASE64_PREFIX)
        assert "=" not in value

    def test_decode_reverses_encode(self) -> None:
        session = _session()
        assert SessionCookieCodec.decode(SessionCookieCodec.encode(session)) == session

    def test_decode_accepts_raw_json(self) -> None:
        raw = json.dumps({"access_token": "at", "refresh_token": "rt", "expires_at": 5})
        assert SessionCookieCodec.decode(raw).expires_at == 5

    @pytest.mark.parametrize("value", ["base64-!!!", "not json", "base64-WzEsMl0", '"string"'])
    def test_malformed_values(self, value: str) -> None:
        with pytest.raises(IdentityError):
            SessionCookieCodec.decode(value)


class TestCookieStorage:
    """Reading and writing cookies, including chunks."""

    def test_read_single_cookie(self) -> None:
        codec = SessionCookieCodec(COOKIE)
        cookies = {COOKIE: SessionCookieCodec.encode(_session())}
        assert codec.read(cookies) == _session()

    def test_read_absent_is_none(self) -> None:
        assert SessionCookieCodec(COOKIE).read({"other": "x"}) is None

    def test_large_session_is_chunked_and_reassembled(self) -> None:
        codec = SessionCookieCodec(COOKIE)
        big = _session(user={"id": "u1", "user_metadata": {"blob": "x" * (MAX_CHUNK_SIZE * 2)}})
        response = Response()

        codec.write(response, big, {})

        headers = _set_cookie_headers(response)
        assert any(h.startswith(f"{COOKIE}.0=") for h in headers)
        assert any(h.startswith(f"{COOKIE}.1=") for h in headers)
        assert not any(h.startswith(f"{COOKIE}=") for h in headers)

        chunks = codec.chunk(SessionCookieCodec.encode(big))
        cookies = {f"{COOKIE}.{i}": part for i, part in enumerate(chunks)}
        assert codec.read(cookies) == big

    def test_write_expires_stale_chunks(self) -> None:
        codec = SessionCookieCodec(COOKIE)
        response = Response()

        codec.write(response, _session(), {f"{COOKIE}.0": "a", f"{COOKIE}.1": "b"})

        headers = _set_cookie_headers(response)
        assert any(h.startswith(f"{COOKIE}=base64-") for h in headers)
        expired = [h for h in headers if h.startswith(f"{COOKIE}.")]
        assert len(expired) == 2
        assert all("Max-Age=0" in h for h in expired)

    def test_written_cookie_attributes(self) -> None:
        response = Response()
        SessionCookieCodec(COOKIE, secure=True).write(response, _session(), {})

        header = _set_cookie_headers(response)[0]
        assert "HttpOnly" in header
        assert "Secure" in header
        assert "Path=/" in header
        assert "SameSite=lax" in header

    def test_clear_expires_base_cookie(self) -> None:
        response = Response()
        SessionCookieCodec(COOKIE).clear(response, {})

        headers = _set_cookie_headers(response)
        assert len(headers) == 1
        assert headers[0].startswith(f"{COOKIE}=")
        assert "Max-Age=0" in headers[0]

    def test_cookie_names_ignores_unrelated(self) -> None:
        codec = SessionCookieCodec(COOKIE)
        names = codec.cookie_names({COOKIE: "a", f"{COOKIE}.0": "b", f"{COOKIE}.x": "c", "theme": "dark"})
        assert sorted(names) == [COOKIE, f"{COOKIE}.0"]
