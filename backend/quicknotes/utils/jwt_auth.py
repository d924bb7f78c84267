from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from quicknotes.models.auth import UserIdentity

ISSUER = "quicknotes-local"

__all__ = ["ISSUER", "JWTError", "create_id_token", "decode_id_token"]


def _secret() -> str:
    s = os.getenv("JWT_SECRET", "")
    if not s:
        # tests/dev set it in env; production must
        raise RuntimeError("JWT_SECRET is not set")
    return s


def _algo() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def _exp_minutes() -> int:
    # a week, like a persisted provider session
    try:
        return int(os.getenv("JWT_EXP_MINUTES", str(60 * 24 * 7)))
    except ValueError:
        return 60 * 24 * 7


def create_id_token(identity: UserIdentity) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=_exp_minutes())
    payload: dict[str, Any] = {
        "iss": ISSUER,
        "sub": identity.uid,
        "email": identity.email,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if identity.display_name:
        payload["name"] = identity.display_name
    if identity.photo_url:
        payload["picture"] = identity.photo_url
    return jwt.encode(payload, _secret(), algorithm=_algo())


def decode_id_token(token: str) -> dict[str, Any]:
    """Decode and verify a token. Raises JWTError when invalid or expired."""
    claims = jwt.decode(token, _secret(), algorithms=[_algo()], issuer=ISSUER)
    if not claims.get("sub"):
        raise JWTError("Token has no subject")
    return claims
