from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from quicknotes.errors import AuthError
from quicknotes.models.auth import FederatedCredential, SignInResult, UserIdentity
from quicknotes.providers.base import IdentityProvider

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[UserIdentity]], None]


class AuthClient:
    """One browser's view of the identity provider.

    Holds the signed-in identity and the token the provider persists for it,
    and notifies listeners on every identity change. Listeners registered
    after initialization are called right away with the current identity.
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self._current_user: Optional[UserIdentity] = None
        self._id_token: Optional[str] = None
        self._ready = False
        self._listeners: list[AuthListener] = []
        self._lock = threading.Lock()

    @property
    def current_user(self) -> Optional[UserIdentity]:
        return self._current_user

    @property
    def id_token(self) -> Optional[str]:
        return self._id_token

    @property
    def ready(self) -> bool:
        return self._ready

    def initialize(self, persisted_token: Optional[str] = None) -> None:
        """Restore a persisted session, then announce the resolved identity."""
        identity = None
        if persisted_token:
            try:
                identity = self.provider.verify_session(persisted_token)
            except AuthError as exc:
                logger.warning("Could not restore session: %s", exc)
        self._ready = True
        self._set(identity, persisted_token if identity else None)

    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)
        if self._ready:
            listener(self._current_user)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _set(self, identity: Optional[UserIdentity], id_token: Optional[str]) -> None:
        self._current_user = identity
        self._id_token = id_token
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(identity)

    def _signed_in(self, result: SignInResult) -> UserIdentity:
        self._ready = True
        self._set(result.identity, result.id_token)
        return result.identity

    def create_user_with_email_and_password(self, email: str, password: str) -> UserIdentity:
        return self._signed_in(self.provider.sign_up(email, password))

    def sign_in_with_email_and_password(self, email: str, password: str) -> UserIdentity:
        return self._signed_in(self.provider.sign_in_with_password(email, password))

    def sign_in_with_credential(self, credential: FederatedCredential) -> UserIdentity:
        return self._signed_in(self.provider.sign_in_with_credential(credential))

    def sign_out(self) -> None:
        self._set(None, None)
