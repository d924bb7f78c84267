from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request

from quicknotes.api.deps import get_browser, get_oauth, get_services
from quicknotes.api.responses import redirect, render
from quicknotes.container import Services
from quicknotes.errors import AuthError
from quicknotes.services import auth_gateway
from quicknotes.session.registry import BrowserSession
from quicknotes.utils.oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

LOGIN_FAILED = "Login failed! Check Credentials"
FEDERATED_LOGIN_FAILED = "Google Login failed!"
SIGNUP_FAILED = "Sign up failed! Try again later"
SIGNUP_OK = "Signed up! Log in now"


@router.get("/login")
def login_page(request: Request, browser: BrowserSession = Depends(get_browser)):
    return render(request, browser, "login.html")


@router.post("/login")
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    browser: BrowserSession = Depends(get_browser),
):
    try:
        auth_gateway.login_with_email(browser.auth, email, password)
    except AuthError as exc:
        logger.warning("Email login failed (%s): %s", exc.code, exc)
        browser.alert = LOGIN_FAILED
        return redirect(request, browser, "/login")
    return redirect(request, browser, "/")


@router.get("/login/federated")
def federated_login(
    request: Request,
    browser: BrowserSession = Depends(get_browser),
    oauth: GoogleOAuthClient = Depends(get_oauth),
):
    try:
        url, state = auth_gateway.begin_federated_login(oauth)
    except AuthError as exc:
        logger.warning("Federated login unavailable (%s): %s", exc.code, exc)
        browser.alert = FEDERATED_LOGIN_FAILED
        return redirect(request, browser, "/login")
    browser.oauth_state = state
    return redirect(request, browser, url)


@router.get("/login/federated/callback")
def federated_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    browser: BrowserSession = Depends(get_browser),
    oauth: GoogleOAuthClient = Depends(get_oauth),
):
    expected, browser.oauth_state = browser.oauth_state, None
    try:
        auth_gateway.login_with_federated_provider(
            browser.auth, oauth, code=code, state=state, expected_state=expected, error=error
        )
    except AuthError as exc:
        logger.warning("Federated login failed (%s): %s", exc.code, exc)
        browser.alert = FEDERATED_LOGIN_FAILED
        return redirect(request, browser, "/login")
    return redirect(request, browser, "/")


@router.get("/signup")
def signup_page(request: Request, browser: BrowserSession = Depends(get_browser)):
    return render(request, browser, "signup.html")


@router.post("/signup")
def signup(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    browser: BrowserSession = Depends(get_browser),
):
    try:
        auth_gateway.sign_up(browser.auth, email, password)
    except AuthError as exc:
        logger.warning("Sign up failed (%s): %s", exc.code, exc)
        browser.alert = SIGNUP_FAILED
        return redirect(request, browser, "/signup")
    browser.alert = SIGNUP_OK
    return redirect(request, browser, "/login")


@router.post("/logout")
def logout(
    request: Request,
    browser: BrowserSession = Depends(get_browser),
    services: Services = Depends(get_services),
):
    try:
        auth_gateway.logout(browser.auth)
    except AuthError as exc:
        logger.error("Logout failed: %s", exc)
        return redirect(request, browser, "/")
    browser.home = None
    services.registry.close(browser.client_id)
    return redirect(request, browser, "/login")
