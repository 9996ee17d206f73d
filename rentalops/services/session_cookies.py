"""Session cookie codec.

The session is stored the way the hosted provider's SSR helpers store it,
so browser and server code can share it:

- cookie name ``sb-<project-ref>-auth-token``
- value ``base64-`` + base64url(JSON session), unpadded
- values longer than :data:`MAX_CHUNK_SIZE` are split across
  ``<name>.0``, ``<name>.1``, ... and reassembled in index order
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping

from starlette.responses import Response

from rentalops.services.identity import IdentityError, Session

BASE64_PREFIX = "base64-"
MAX_CHUNK_SIZE = 3180

# 400 days, the longest lifetime browsers accept.
_COOKIE_MAX_AGE = 400 * 24 * 60 * 60


class SessionCookieCodec:
    """Read and write the session cookie set for one project."""

    def __init__(self, cookie_name: str, *, secure: bool = True, max_age: int = _COOKIE_MAX_AGE) -> None:
        self.cookie_name = cookie_name
        self._secure = secure
        self._max_age = max_age

    @property
    def verifier_cookie_name(self) -> str:
        """Cookie holding the PKCE code verifier between login and callback."""
        return f"{self.cookie_name}-code-verifier"

    # -- encoding -----------------------------------------------------------

    @staticmethod
    def encode(session: Session) -> str:
        raw = json.dumps(session.to_payload(), separators=(",", ":")).encode("utf-8")
        return BASE64_PREFIX + base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    @staticmethod
    def decode(value: str) -> Session:
        """Parse a cookie value.

        Raises
        ------
        IdentityError
            If the value is not a well-formed session.
        """
        try:
            if value.startswith(BASE64_PREFIX):
                encoded = value[len(BASE64_PREFIX) :]
                padded = encoded + "=" * (-len(encoded) % 4)
                text = base64.urlsafe_b64decode(padded).decode("utf-8")
            else:
                text = value
            payload = json.loads(text)
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise IdentityError("Malformed session cookie") from exc
        if not isinstance(payload, dict):
            raise IdentityError("Malformed session cookie")
        return Session.from_payload(payload)

    @staticmethod
    def chunk(value: str, size: int = MAX_CHUNK_SIZE) -> list[str]:
        return [value[i : i + size] for i in range(0, len(value), size)] or [""]

    # -- request side -------------------------------------------------------

    def cookie_names(self, cookies: Mapping[str, str]) -> list[str]:
        """Names of every session cookie (base or chunk) present in *cookies*."""
        prefix = self.cookie_name + "."
        return [
            name
            for name in cookies
            if name == self.cookie_name or (name.startswith(prefix) and name[len(prefix) :].isdigit())
        ]

    def read_raw(self, cookies: Mapping[str, str]) -> str | None:
        if self.cookie_name in cookies:
            return cookies[self.cookie_name]
        parts: list[str] = []
        index = 0
        while f"{self.cookie_name}.{index}" in cookies:
            parts.append(cookies[f"{self.cookie_name}.{index}"])
            index += 1
        return "".join(parts) if parts else None

    def read(self, cookies: Mapping[str, str]) -> Session | None:
        """Return the stored session, or ``None`` when no session cookie exists."""
        raw = self.read_raw(cookies)
        if not raw:
            return None
        return self.decode(raw)

    # -- response side ------------------------------------------------------

    def _set(self, response: Response, name: str, value: str, *, max_age: int | None = None) -> None:
        response.set_cookie(
            key=name,
            value=value,
            max_age=self._max_age if max_age is None else max_age,
            path="/",
            secure=self._secure,
            httponly=True,
            samesite="lax",
        )

    def write(self, response: Response, session: Session, request_cookies: Mapping[str, str]) -> None:
        """Store *session* on *response* and expire stale chunks."""
        chunks = self.chunk(self.encode(session))
        if len(chunks) == 1:
            written = {self.cookie_name: chunks[0]}
        else:
            written = {f"{self.cookie_name}.{i}": part for i, part in enumerate(chunks)}
        for name, value in written.items():
            self._set(response, name, value)
        for name in self.cookie_names(request_cookies):
            if name not in written:
                self._expire(response, name)

    def clear(self, response: Response, request_cookies: Mapping[str, str]) -> None:
        """Expire every session cookie the browser sent (at least the base one)."""
        names = set(self.cookie_names(request_cookies)) | {self.cookie_name}
        for name in sorted(names):
            self._expire(response, name)

    def set_verifier(self, response: Response, verifier: str) -> None:
        self._set(response, self.verifier_cookie_name, verifier, max_age=10 * 60)

    def clear_verifier(self, response: Response) -> None:
        self._expire(response, self.verifier_cookie_name)

    def _expire(self, response: Response, name: str) -> None:
        response.delete_cookie(key=name, path="/", secure=self._secure, httponly=True, samesite="lax")
