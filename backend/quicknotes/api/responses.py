from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import Request, status
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from quicknotes.config import Settings
from quicknotes.session.registry import BrowserSession

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _localtime(value: str | None) -> str:
    if not value:
        return ""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


templates.env.filters["localtime"] = _localtime


def attach_cookies(response: Response, browser: BrowserSession, settings: Settings, kept: bool) -> Response:
    """Keep the client id and the provider's persisted token in cookies.

    The client id is only handed out for sessions the registry keeps.
    """
    if kept:
        response.set_cookie(
            key=settings.client_cookie_name,
            value=browser.client_id,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
            path="/",
        )
    else:
        response.delete_cookie(settings.client_cookie_name, path="/")
    token = browser.auth.id_token
    if token:
        response.set_cookie(
            key=settings.session_cookie_name,
            value=token,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
            path="/",
        )
    else:
        response.delete_cookie(settings.session_cookie_name, path="/")
    return response


def render(
    request: Request,
    browser: BrowserSession,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    ctx = {"alert": browser.pop_alert(), "identity": browser.session.identity}
    ctx.update(context or {})
    response = templates.TemplateResponse(request, name, ctx, status_code=status_code)
    return _finish(request, response, browser)


def redirect(request: Request, browser: BrowserSession, url: str) -> Response:
    response = RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)
    return _finish(request, response, browser)


def _finish(request: Request, response: Response, browser: BrowserSession) -> Response:
    kept = request.app.state.services.registry.retain(browser)
    return attach_cookies(response, browser, request.app.state.settings, kept)
