"""
Dependency wiring for the FastAPI routes.
"""
from __future__ import annotations

from fastapi import Depends, Request

from quicknotes.config import Settings
from quicknotes.container import Services
from quicknotes.models.auth import UserIdentity
from quicknotes.session.guard import GuardOutcome, LoginRequired, SessionPending, decide
from quicknotes.session.registry import BrowserSession
from quicknotes.storage.notes_store import NotesStore
from quicknotes.utils.oauth import GoogleOAuthClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_notes_store(services: Services = Depends(get_services)) -> NotesStore:
    return services.notes


def get_oauth(services: Services = Depends(get_services)) -> GoogleOAuthClient:
    return services.oauth


def get_browser(
    request: Request,
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
) -> BrowserSession:
    browser = services.registry.open(
        request.cookies.get(settings.client_cookie_name),
        persisted_token=request.cookies.get(settings.session_cookie_name),
    )
    # exception handlers need it to write cookies
    request.state.browser = browser
    return browser


def require_identity(browser: BrowserSession = Depends(get_browser)) -> UserIdentity:
    state = browser.session.snapshot()
    outcome = decide(state)
    if outcome is GuardOutcome.LOADING:
        raise SessionPending()
    if outcome is GuardOutcome.REDIRECT:
        raise LoginRequired()
    return state.identity
