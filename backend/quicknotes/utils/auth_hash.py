"""Password hashing for the local identity provider.

Accounts created by the local backend never store plaintext passwords; the
stored value is a passlib hash. bcrypt is preferred. When the bcrypt backend
cannot be loaded (missing wheel, incompatible release) the context falls back
to pbkdf2_sha256 so sign-up keeps working. `BCRYPT_ROUNDS` overrides the cost
for either scheme, which the tests use to keep hashing fast.
"""
from __future__ import annotations

import logging
import os

from passlib.context import CryptContext

logger = logging.getLogger(__name__)


def _rounds() -> int | None:
    raw = os.environ.get("BCRYPT_ROUNDS")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric BCRYPT_ROUNDS=%r", raw)
        return None


def _build_context() -> CryptContext:
    rounds = _rounds()
    try:
        if rounds:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        else:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
        # passlib loads the backend lazily; force it now
        ctx.hash("probe")
        return ctx
    except Exception as exc:
        logger.warning("bcrypt backend unavailable, falling back to pbkdf2_sha256: %s", exc)

    if rounds:
        return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto", pbkdf2_sha256__rounds=max(rounds, 1000))
    return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


pwd_context = _build_context()


def hash_password(plain: str) -> str:
    if plain is None:
        raise ValueError("Password must not be None")
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Return True if `plain` matches `hashed`.

    Federated-only accounts have no hash; they never match a password.
    """
    if plain is None or not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # unknown or malformed hash
        return False
