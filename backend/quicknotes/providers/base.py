from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from quicknotes.models.auth import FederatedCredential, SignInResult, UserIdentity

MIN_PASSWORD_LENGTH = 6


class IdentityProvider(ABC):
    """Issues and verifies user sessions.

    Errors are raised as `quicknotes.errors.AuthError` subclasses and are
    never retried by the provider.
    """

    @abstractmethod
    def sign_up(self, email: str, password: str) -> SignInResult:
        """Create an email/password account and sign it in."""

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> SignInResult:
        ...

    @abstractmethod
    def sign_in_with_credential(self, credential: FederatedCredential) -> SignInResult:
        ...

    @abstractmethod
    def verify_session(self, id_token: str) -> Optional[UserIdentity]:
        """Identity for a persisted token, or None if it is invalid/expired."""
