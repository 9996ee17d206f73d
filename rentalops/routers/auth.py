"""Sign-in, sign-up, OAuth callback and sign-out.

Credentials are forwarded to the identity provider; on success the
returned token pair is written to the session cookies.  Everything under
``/auth`` is public, so signed-in visitors are redirected away by the
session gate before reaching these handlers (the callback excepted).
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field

from rentalops.dependencies import CookieCodecDep, IdentityDep, SettingsDep
from rentalops.middleware.session_gate import safe_return_url
from rentalops.schemas import ApiResponse
from rentalops.services.identity import IdentityError, Session
from rentalops.services.session_cookies import SessionCookieCodec

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
session_router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for ``POST /auth/login``."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    return_url: str | None = Field(default=None, alias="returnUrl")


class SignupRequest(BaseModel):
    """Request body for ``POST /auth/signup``."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    full_name: str | None = None
    phone: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _identity_failure(exc: IdentityError) -> HTTPException:
    if exc.is_rejection:
        return HTTPException(status_code=401, detail=exc.message)
    logger.warning("Identity provider unavailable: %s", exc.message)
    return HTTPException(status_code=503, detail="Authentication service unavailable")


def _session_response(
    content: dict[str, Any], session: Session, request: Request, codec: SessionCookieCodec
) -> JSONResponse:
    response = JSONResponse(content=content)
    codec.write(response, session, request.cookies)
    return response


def _pkce_pair() -> tuple[str, str]:
    verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=ApiResponse, response_model_exclude_none=True)
async def auth_index(returnUrl: str | None = Query(default=None)) -> ApiResponse:  # noqa: N803
    """Describe how to sign in; echoes the pending ``returnUrl``."""
    return ApiResponse(
        success=True,
        data={
            "returnUrl": safe_return_url(returnUrl),
            "login": "/auth/login",
            "signup": "/auth/signup",
            "authorize": "/auth/authorize",
        },
    )


@router.post("/login")
async def login(body: LoginRequest, request: Request, identity: IdentityDep, codec: CookieCodecDep) -> JSONResponse:
    """Password sign-in."""
    try:
        session = await identity.sign_in_with_password(body.email, body.password)
    except IdentityError as exc:
        raise _identity_failure(exc) from exc
    logger.info("User %s signed in", session.user_id)
    content = ApiResponse(
        success=True,
        data={"user": session.user, "redirectTo": safe_return_url(body.return_url)},
    ).model_dump(exclude_none=True)
    return _session_response(content, session, request, codec)


@router.post("/signup")
async def signup(body: SignupRequest, request: Request, identity: IdentityDep, codec: CookieCodecDep) -> JSONResponse:
    """Register a user.  Signs them in immediately when no confirmation is required."""
    metadata = {k: v for k, v in {"full_name": body.full_name, "phone": body.phone}.items() if v}
    try:
        payload = await identity.sign_up(body.email, body.password, metadata)
    except IdentityError as exc:
        if exc.is_rejection:
            raise HTTPException(status_code=400, detail=exc.message) from exc
        raise _identity_failure(exc) from exc

    if isinstance(payload, dict) and payload.get("access_token"):
        session = Session.from_payload(payload)
        content = ApiResponse(success=True, data={"user": session.user}).model_dump(exclude_none=True)
        return _session_response(content, session, request, codec)

    user = payload.get("user", payload) if isinstance(payload, dict) else None
    return JSONResponse(
        content=ApiResponse(
            success=True,
            data={"user": user},
            message="Check your email to confirm your account",
        ).model_dump(exclude_none=True)
    )


@router.get("/authorize")
async def authorize(
    request: Request,
    settings: SettingsDep,
    codec: CookieCodecDep,
    provider: str = Query(..., min_length=1, description="OAuth provider name, e.g. google."),
    returnUrl: str | None = Query(default=None),  # noqa: N803
) -> RedirectResponse:
    """Start an OAuth sign-in with PKCE; the provider redirects to ``/auth/callback``."""
    if not settings.is_supabase_configured:
        raise HTTPException(status_code=503, detail="Supabase is not configured")
    verifier, challenge = _pkce_pair()
    callback = str(request.url_for("auth_callback").include_query_params(returnUrl=safe_return_url(returnUrl)))
    query = urlencode(
        {
            "provider": provider,
            "redirect_to": callback,
            "code_challenge": challenge,
            "code_challenge_method": "s256",
        }
    )
    response = RedirectResponse(f"{settings.supabase_url.rstrip('/')}/auth/v1/authorize?{query}", status_code=307)
    codec.set_verifier(response, verifier)
    return response


@router.get("/callback", name="auth_callback")
async def callback(
    request: Request,
    identity: IdentityDep,
    codec: CookieCodecDep,
    settings: SettingsDep,
    code: str | None = Query(default=None),
    returnUrl: str | None = Query(default=None),  # noqa: N803
) -> RedirectResponse:
    """Exchange the authorization code for a session and continue to ``returnUrl``."""
    verifier = request.cookies.get(codec.verifier_cookie_name)
    if not code or not verifier:
        return RedirectResponse(f"{settings.login_path}?{urlencode({'error': 'missing_code'})}", status_code=307)
    try:
        session = await identity.exchange_code(code, verifier)
    except IdentityError as exc:
        logger.info("Code exchange failed: %s", exc.message)
        return RedirectResponse(f"{settings.login_path}?{urlencode({'error': 'exchange_failed'})}", status_code=307)

    response = RedirectResponse(safe_return_url(returnUrl), status_code=307)
    codec.write(response, session, request.cookies)
    codec.clear_verifier(response)
    logger.info("User %s signed in via callback", session.user_id)
    return response


@session_router.post("/logout")
async def logout(request: Request, identity: IdentityDep, codec: CookieCodecDep) -> JSONResponse:
    """Revoke the session at the provider (best effort) and clear the cookies."""
    access_token = getattr(request.state, "access_token", None)
    if access_token:
        try:
            await identity.sign_out(access_token)
        except IdentityError as exc:
            logger.info("Provider sign-out failed, clearing cookies anyway: %s", exc.message)
    response = JSONResponse(content={"success": True, "message": "Signed out"})
    codec.clear(response, request.cookies)
    return response
