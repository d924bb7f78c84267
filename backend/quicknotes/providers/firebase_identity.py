"""Firebase Authentication as the identity provider.

Sign-up and sign-in go through the Identity Toolkit REST API (the same calls
the Firebase web SDK makes); persisted sessions are checked with the Admin
SDK. Only imported when QUICKNOTES_BACKEND=firebase.
"""
from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import firebase_admin
import requests
from firebase_admin import auth, credentials

from quicknotes.errors import (
    AuthError,
    EmailAlreadyInUseError,
    FederatedLoginError,
    InvalidCredentialsError,
    InvalidEmailError,
    ProviderUnavailableError,
    WeakPasswordError,
)
from quicknotes.models.auth import FederatedCredential, SignInResult, UserIdentity
from quicknotes.providers.base import IdentityProvider

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:{method}"
REQUEST_TIMEOUT = 10

_ERRORS: dict[str, type[AuthError]] = {
    "EMAIL_EXISTS": EmailAlreadyInUseError,
    "INVALID_LOGIN_CREDENTIALS": InvalidCredentialsError,
    "INVALID_PASSWORD": InvalidCredentialsError,
    "EMAIL_NOT_FOUND": InvalidCredentialsError,
    "USER_DISABLED": InvalidCredentialsError,
    "MISSING_PASSWORD": InvalidCredentialsError,
    "INVALID_EMAIL": InvalidEmailError,
    "WEAK_PASSWORD": WeakPasswordError,
    "INVALID_IDP_RESPONSE": FederatedLoginError,
}


def get_firebase_app(credentials_path: str | None, project_id: str | None = None) -> firebase_admin.App:
    if not firebase_admin._apps:
        cred = credentials.Certificate(credentials_path) if credentials_path else credentials.ApplicationDefault()
        options = {"projectId": project_id} if project_id else {}
        firebase_admin.initialize_app(cred, options)
        logger.info("Firebase Admin SDK initialized (project=%s)", project_id)
    return firebase_admin.get_app()


def _error_for(message: str) -> AuthError:
    # messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    key = message.split(":", 1)[0].strip()
    cls = _ERRORS.get(key)
    if cls is None:
        return AuthError(message, code=f"auth/{key.lower().replace('_', '-')}")
    return cls(message)


class FirebaseIdentityProvider(IdentityProvider):
    def __init__(self, api_key: str, request_uri: str, app: Any = None):
        if not api_key:
            raise RuntimeError("FIREBASE_API_KEY is not set")
        self.api_key = api_key
        self.request_uri = request_uri
        self.app = app

    def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = IDENTITY_TOOLKIT_URL.format(method=method)
        try:
            res = requests.post(url, params={"key": self.api_key}, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise ProviderUnavailableError(str(exc)) from exc

        try:
            body = res.json()
        except ValueError:
            body = {}
        if res.status_code >= 400:
            message = (body.get("error") or {}).get("message") or f"HTTP {res.status_code}"
            raise _error_for(message)
        return body

    @staticmethod
    def _result(body: dict[str, Any]) -> SignInResult:
        identity = UserIdentity(
            uid=body["localId"],
            email=body.get("email"),
            photo_url=body.get("photoUrl"),
            display_name=body.get("displayName"),
        )
        return SignInResult(identity=identity, id_token=body["idToken"])

    def sign_up(self, email: str, password: str) -> SignInResult:
        body = self._call("signUp", {"email": email, "password": password, "returnSecureToken": True})
        return self._result(body)

    def sign_in_with_password(self, email: str, password: str) -> SignInResult:
        body = self._call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._result(body)

    def sign_in_with_credential(self, credential: FederatedCredential) -> SignInResult:
        post_body = urlencode({"id_token": credential.id_token, "providerId": credential.provider_id})
        body = self._call(
            "signInWithIdp",
            {
                "postBody": post_body,
                "requestUri": self.request_uri,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return self._result(body)

    # TODO: keep the refresh token and renew through securetoken.googleapis.com;
    # ID tokens expire after an hour, which currently ends the session.
    def verify_session(self, id_token: str) -> Optional[UserIdentity]:
        try:
            decoded = auth.verify_id_token(id_token, app=self.app)
        except (auth.ExpiredIdTokenError, auth.RevokedIdTokenError) as exc:
            logger.info("Persisted Firebase session expired: %s", exc)
            return None
        except (auth.InvalidIdTokenError, ValueError) as exc:
            logger.warning("Invalid Firebase token: %s", exc)
            return None
        except auth.CertificateFetchError as exc:
            raise ProviderUnavailableError(str(exc)) from exc
        return UserIdentity(
            uid=decoded["uid"],
            email=decoded.get("email"),
            photo_url=decoded.get("picture"),
            display_name=decoded.get("name"),
        )
