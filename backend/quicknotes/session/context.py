from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from quicknotes.models.auth import UserIdentity
from quicknotes.session.auth_client import AuthClient


@dataclass(frozen=True)
class SessionState:
    identity: Optional[UserIdentity] = None
    loading: bool = True


class SessionContext:
    """Latest identity of one browser session plus a loading flag.

    Populated only through the auth client's identity-change notifications
    between mount() and unmount().
    """

    def __init__(self, auth: AuthClient):
        self.auth = auth
        self._state = SessionState()
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def mount(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_auth_state_changed(self._on_identity_changed)

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_identity_changed(self, identity: Optional[UserIdentity]) -> None:
        # single assignment; readers never see a half-updated state
        self._state = SessionState(identity=identity, loading=False)

    def snapshot(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[UserIdentity]:
        return self._state.identity

    @property
    def loading(self) -> bool:
        return self._state.loading
