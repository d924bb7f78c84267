"""Thin wrappers over the identity provider used by the auth views.

No validation and no retries here: whatever the provider raises reaches the
caller unchanged.
"""
from __future__ import annotations

import secrets
from typing import Optional

from quicknotes.errors import FederatedLoginCancelledError, FederatedLoginError
from quicknotes.models.auth import UserIdentity
from quicknotes.session.auth_client import AuthClient
from quicknotes.utils.oauth import GoogleOAuthClient


def sign_up(auth: AuthClient, email: str, password: str) -> UserIdentity:
    return auth.create_user_with_email_and_password(email, password)


def login_with_email(auth: AuthClient, email: str, password: str) -> UserIdentity:
    return auth.sign_in_with_email_and_password(email, password)


def begin_federated_login(oauth: GoogleOAuthClient) -> tuple[str, str]:
    """Consent URL plus the state value the callback must echo back."""
    state = secrets.token_urlsafe(16)
    return oauth.authorization_url(state), state


def login_with_federated_provider(
    auth: AuthClient,
    oauth: GoogleOAuthClient,
    code: Optional[str],
    state: Optional[str],
    expected_state: Optional[str],
    error: Optional[str] = None,
) -> UserIdentity:
    if error:
        # user closed or declined the consent screen
        raise FederatedLoginCancelledError(f"Provider returned {error}")
    if not expected_state or not state or not secrets.compare_digest(state, expected_state):
        raise FederatedLoginError("OAuth state mismatch")
    if not code:
        raise FederatedLoginError("Missing authorization code")

    credential = oauth.exchange_code(code)
    return auth.sign_in_with_credential(credential)


def logout(auth: AuthClient) -> None:
    auth.sign_out()
