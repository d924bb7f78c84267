from __future__ import annotations

from enum import Enum

from quicknotes.session.context import SessionState

LOGIN_PATH = "/login"


class GuardOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    ALLOW = "allow"


def decide(state: SessionState) -> GuardOutcome:
    if state.loading:
        return GuardOutcome.LOADING
    if state.identity is None:
        return GuardOutcome.REDIRECT
    return GuardOutcome.ALLOW


class SessionPending(Exception):
    """Identity not resolved yet; render the placeholder."""


class LoginRequired(Exception):
    """No identity; send the browser to the login view."""

    def __init__(self, location: str = LOGIN_PATH):
        super().__init__(location)
        self.location = location
