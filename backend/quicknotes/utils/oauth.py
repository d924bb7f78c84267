"""Google sign-in through the OAuth authorization-code flow.

The browser is redirected to Google's consent page and comes back to
``/login/federated/callback`` with a one-time code. The code is exchanged for
tokens server-side; the resulting id_token is what the identity provider
accepts as a federated credential.
"""
from __future__ import annotations

import logging
from typing import Any

import requests

from quicknotes.errors import AuthError, FederatedLoginError, ProviderUnavailableError
from quicknotes.models.auth import FederatedCredential

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"

REQUEST_TIMEOUT = 10


class GoogleOAuthClient:
    provider_id = "google.com"

    def __init__(self, client_id: str | None, client_secret: str | None, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_configured(self) -> None:
        if not self.configured:
            raise AuthError("Google sign-in is not configured", code="auth/operation-not-allowed")

    def authorization_url(self, state: str) -> str:
        self._require_configured()
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "prompt": "select_account",
        }
        return requests.Request("GET", AUTHORIZE_URL, params=params).prepare().url

    def _get_json(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            res = requests.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise ProviderUnavailableError(str(exc)) from exc
        try:
            body = res.json()
        except ValueError:
            body = {}
        if res.status_code >= 400:
            detail = body.get("error_description") or body.get("error") or res.text
            raise FederatedLoginError(f"Google rejected the request: {detail}")
        return body

    def exchange_code(self, code: str) -> FederatedCredential:
        self._require_configured()
        token_json = self._get_json(
            "POST",
            TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        id_token = token_json.get("id_token")
        access_token = token_json.get("access_token")
        if not id_token or not access_token:
            raise FederatedLoginError("Token response is missing id_token/access_token")

        uinfo = self._get_json(
            "GET",
            USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if not uinfo.get("sub") or not uinfo.get("email"):
            raise FederatedLoginError("Google profile has no subject or email")

        logger.info("Google sign-in completed for sub=%s", uinfo["sub"])
        return FederatedCredential(
            provider_id=self.provider_id,
            id_token=id_token,
            subject=str(uinfo["sub"]),
            email=uinfo["email"],
            # v3 userinfo sends a bool, older endpoints the string "true"
            email_verified=uinfo.get("email_verified") in (True, "true"),
            display_name=uinfo.get("name"),
            photo_url=uinfo.get("picture"),
        )
