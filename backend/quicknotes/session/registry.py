from __future__ import annotations

import logging
import secrets
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Optional

from quicknotes.models.auth import UserIdentity
from quicknotes.providers.base import IdentityProvider
from quicknotes.session.auth_client import AuthClient
from quicknotes.session.context import SessionContext
from quicknotes.storage.notes_store import NotesStore
from quicknotes.views.home import HomeView

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 10_000
DEFAULT_IDLE_SECONDS = 24 * 60 * 60


@dataclass
class BrowserSession:
    """Everything a single browser keeps between page loads."""

    client_id: str
    auth: AuthClient
    session: SessionContext
    home: Optional[HomeView] = None
    alert: Optional[str] = None
    oauth_state: Optional[str] = None
    last_seen: float = field(default=0.0, compare=False)

    def home_for(self, identity: UserIdentity, notes: NotesStore) -> HomeView:
        if self.home is None or self.home.user.uid != identity.uid:
            self.home = HomeView(notes, identity)
        return self.home

    def pop_alert(self) -> Optional[str]:
        msg, self.alert = self.alert, None
        return msg

    def worth_keeping(self) -> bool:
        return bool(self.auth.current_user or self.alert or self.oauth_state)


class ClientRegistry:
    """Browser sessions by client id.

    ``open`` hands out a detached session for unknown clients; it is only
    stored once ``retain`` finds something in it to keep. Stored sessions are
    dropped after ``idle_seconds`` without a request, and the least recently
    used ones are evicted beyond ``max_sessions``.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.max_sessions = max_sessions
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._sessions: OrderedDict[str, BrowserSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._sessions

    def _expire(self, now: float) -> list[BrowserSession]:
        dropped = []
        while self._sessions:
            client_id, browser = next(iter(self._sessions.items()))
            if now - browser.last_seen < self.idle_seconds:
                break
            del self._sessions[client_id]
            dropped.append(browser)
        return dropped

    def open(self, client_id: Optional[str], persisted_token: Optional[str] = None) -> BrowserSession:
        now = self._clock()
        with self._lock:
            dropped = self._expire(now)
            browser = self._sessions.get(client_id) if client_id else None
            if browser is not None:
                browser.last_seen = now
                self._sessions.move_to_end(client_id)
        self._unmount(dropped, "idle")
        if browser is not None:
            return browser

        auth = AuthClient(self.provider)
        browser = BrowserSession(
            client_id=secrets.token_urlsafe(24),
            auth=auth,
            session=SessionContext(auth),
            last_seen=now,
        )
        browser.session.mount()
        browser.auth.initialize(persisted_token)
        return browser

    def retain(self, browser: BrowserSession) -> bool:
        """Store ``browser`` if it holds anything; True when it is stored."""
        with self._lock:
            if browser.client_id in self._sessions:
                return True
            if not browser.worth_keeping():
                return False
            browser.last_seen = self._clock()
            self._sessions[browser.client_id] = browser
            evicted = []
            while len(self._sessions) > self.max_sessions:
                _, oldest = self._sessions.popitem(last=False)
                evicted.append(oldest)
        self._unmount(evicted, "capacity")
        return True

    def close(self, client_id: str) -> None:
        with self._lock:
            browser = self._sessions.pop(client_id, None)
        if browser is not None:
            browser.session.unmount()

    def close_all(self) -> None:
        with self._lock:
            browsers = list(self._sessions.values())
            self._sessions.clear()
        for browser in browsers:
            browser.session.unmount()
        logger.info("Closed %d browser sessions", len(browsers))

    @staticmethod
    def _unmount(browsers: list[BrowserSession], reason: str) -> None:
        for browser in browsers:
            browser.session.unmount()
        if browsers:
            logger.info("Evicted %d browser sessions (%s)", len(browsers), reason)
