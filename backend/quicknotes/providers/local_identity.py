from __future__ import annotations

import logging
import re
from typing import Optional

from quicknotes.errors import (
    EmailAlreadyInUseError,
    FederatedLoginError,
    InvalidCredentialsError,
    InvalidEmailError,
    WeakPasswordError,
)
from quicknotes.models.auth import FederatedCredential, SignInResult, UserIdentity
from quicknotes.providers.base import MIN_PASSWORD_LENGTH, IdentityProvider
from quicknotes.storage.users_store import UserRecord, UsersStore
from quicknotes.utils.auth_hash import hash_password, verify_password
from quicknotes.utils.jwt_auth import JWTError, create_id_token, decode_id_token

logger = logging.getLogger(__name__)

PASSWORD_PROVIDER = "password"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _identity(rec: UserRecord) -> UserIdentity:
    return UserIdentity(
        uid=rec.uid,
        email=rec.email,
        photo_url=rec.photo_url,
        display_name=rec.display_name,
    )


class LocalIdentityProvider(IdentityProvider):
    """In-process identity provider backed by UsersStore and signed JWTs."""

    def __init__(self, users: UsersStore):
        self.users = users

    def _issue(self, rec: UserRecord) -> SignInResult:
        identity = _identity(rec)
        return SignInResult(identity=identity, id_token=create_id_token(identity))

    def sign_up(self, email: str, password: str) -> SignInResult:
        if not email or not _EMAIL_RE.match(email.strip()):
            raise InvalidEmailError("The email address is badly formatted")
        if password is None or len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")

        try:
            rec = self.users.create(email, hash_password(password), provider=PASSWORD_PROVIDER)
        except FileExistsError:
            raise EmailAlreadyInUseError("The email address is already in use")

        logger.info("Created account uid=%s", rec.uid)
        return self._issue(rec)

    def sign_in_with_password(self, email: str, password: str) -> SignInResult:
        if not email or not _EMAIL_RE.match(email.strip()):
            raise InvalidEmailError("The email address is badly formatted")

        rec = self.users.get_by_email(email)
        # same error for unknown email and wrong password
        if rec is None or not verify_password(password, rec.hashed_password):
            raise InvalidCredentialsError("Invalid email or password")
        return self._issue(rec)

    def sign_in_with_credential(self, credential: FederatedCredential) -> SignInResult:
        # accounts are keyed by email; only a verified one may claim or link one
        if not credential.email_verified:
            logger.warning(
                "Refused %s sign-in for sub=%s: email not verified",
                credential.provider_id,
                credential.subject,
            )
            raise FederatedLoginError("The provider has not verified this email address")

        rec = self.users.get_by_email(credential.email)
        if rec is None:
            rec = self.users.create(
                credential.email,
                hashed_password=None,
                provider=credential.provider_id,
                display_name=credential.display_name,
                photo_url=credential.photo_url,
            )
            logger.info("Created account uid=%s via %s", rec.uid, credential.provider_id)
        else:
            # link the federated provider to the existing account
            if credential.provider_id not in rec.providers:
                rec.providers.append(credential.provider_id)
            rec.display_name = rec.display_name or credential.display_name
            rec.photo_url = credential.photo_url or rec.photo_url
            self.users.save(rec)
        return self._issue(rec)

    def verify_session(self, id_token: str) -> Optional[UserIdentity]:
        try:
            claims = decode_id_token(id_token)
        except JWTError as exc:
            logger.info("Rejected persisted session: %s", exc)
            return None

        email = claims.get("email")
        rec = self.users.get_by_email(email) if email else None
        if rec is None or rec.uid != claims["sub"]:
            return None
        return _identity(rec)
