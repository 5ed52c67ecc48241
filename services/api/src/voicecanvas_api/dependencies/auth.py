"""Session verification dependencies.

Sessions are issued by the web front end as
``base64url(json{email, name, exp}).base64url(hmac_sha256(payload))`` signed
with ``AUTH_SESSION_SECRET``. They arrive in the session cookie or as a Bearer
token. This service only verifies them.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, Request, status

from voicecanvas_shared.config import get_settings
from voicecanvas_shared.logging import get_logger

logger = get_logger(__name__)

ANONYMOUS_IDENTITY = "anonymous"


@dataclass
class SessionUser:
    """Represents a signed-in user extracted from the session."""

    email: str
    name: str | None
    raw: dict[str, Any]


def _b64encode(payload: bytes) -> str:
    return base64.urlsafe_b64encode(payload).decode().rstrip("=")


def _b64decode(payload: str) -> bytes:
    padding = "=" * (-len(payload) % 4)
    return base64.urlsafe_b64decode(payload + padding)


def _sign_value(value: str, secret: str) -> str:
    signature = hmac.new(secret.encode(), value.encode(), hashlib.sha256).digest()
    return _b64encode(signature)


def issue_session_token(
    email: str,
    secret: str,
    name: str | None = None,
    ttl_seconds: int = 86400,
) -> str:
    """Create a signed session token in the format the front end issues."""
    payload = {
        "email": email,
        "name": name,
        "exp": int((datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)).timestamp()),
    }
    raw = _b64encode(json.dumps(payload, separators=(",", ":")).encode())
    return f"{raw}.{_sign_value(raw, secret)}"


def parse_session_token(token: str, secret: str) -> SessionUser | None:
    """Verify a session token and return its user, or None if it is not valid."""
    if not secret:
        return None
    try:
        raw, signature = token.split(".", 1)
    except ValueError:
        return None

    if not hmac.compare_digest(signature, _sign_value(raw, secret)):
        return None

    try:
        payload = json.loads(_b64decode(raw))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or exp <= datetime.now(timezone.utc).timestamp():
        return None

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        return None

    return SessionUser(email=email, name=payload.get("name"), raw=payload)


def _extract_token(request: Request, cookie_name: str) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(cookie_name)


async def optional_auth(request: Request) -> SessionUser | None:
    """FastAPI dependency that returns the signed-in user if present, or None."""
    settings = get_settings()
    token = _extract_token(request, settings.auth.session_cookie_name)
    if not token:
        return None

    user = parse_session_token(token, settings.auth.session_secret)
    if user is None:
        logger.debug("Ignoring invalid session token", path=request.url.path)
    return user


async def require_auth(user: SessionUser | None = Depends(optional_auth)) -> SessionUser:
    """FastAPI dependency that requires a valid session.

    Raises:
        HTTPException 401 if no valid session exists.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


async def get_identity(user: SessionUser | None = Depends(optional_auth)) -> str:
    """Identity used for admission control: the session email or ``anonymous``."""
    return user.email if user else ANONYMOUS_IDENTITY
