import pytest
import requests

from quicknotes.errors import (
    AuthError,
    EmailAlreadyInUseError,
    InvalidCredentialsError,
    ProviderUnavailableError,
    WeakPasswordError,
)
from quicknotes.models.auth import FederatedCredential
from quicknotes.providers import firebase_identity
from quicknotes.providers.firebase_identity import FirebaseIdentityProvider


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self):
        return self._body


@pytest.fixture()
def calls(monkeypatch):
    recorded = []
    replies = []

    def fake_post(url, params=None, json=None, timeout=None):
        recorded.append({"url": url, "params": params, "json": json})
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(firebase_identity.requests, "post", fake_post)
    return recorded, replies


@pytest.fixture()
def provider():
    return FirebaseIdentityProvider(api_key="test-key", request_uri="http://localhost:8000/cb")


def _ok(**extra):
    body = {"localId": "fb-uid", "email": "a@example.com", "idToken": "fb-id-token"}
    body.update(extra)
    return FakeResponse(200, body)


def _err(message):
    return FakeResponse(400, {"error": {"code": 400, "message": message}})


def test_sign_in_with_password(provider, calls):
    recorded, replies = calls
    replies.append(_ok(displayName="Ada"))

    result = provider.sign_in_with_password("a@example.com", "pw123456")
    assert result.identity.uid == "fb-uid"
    assert result.identity.display_name == "Ada"
    assert result.id_token == "fb-id-token"

    [call] = recorded
    assert call["url"].endswith("accounts:signInWithPassword")
    assert call["params"] == {"key": "test-key"}
    assert call["json"]["returnSecureToken"] is True


def test_sign_up_maps_email_exists(provider, calls):
    _, replies = calls
    replies.append(_err("EMAIL_EXISTS"))
    with pytest.raises(EmailAlreadyInUseError):
        provider.sign_up("a@example.com", "pw123456")


def test_weak_password_message_with_detail(provider, calls):
    _, replies = calls
    replies.append(_err("WEAK_PASSWORD : Password should be at least 6 characters"))
    with pytest.raises(WeakPasswordError):
        provider.sign_up("a@example.com", "123")


@pytest.mark.parametrize("message", ["INVALID_LOGIN_CREDENTIALS", "INVALID_PASSWORD", "EMAIL_NOT_FOUND"])
def test_bad_credentials(provider, calls, message):
    _, replies = calls
    replies.append(_err(message))
    with pytest.raises(InvalidCredentialsError):
        provider.sign_in_with_password("a@example.com", "nope")


def test_unknown_error_keeps_provider_code(provider, calls):
    _, replies = calls
    replies.append(_err("TOO_MANY_ATTEMPTS_TRY_LATER"))
    with pytest.raises(AuthError) as exc:
        provider.sign_in_with_password("a@example.com", "nope")
    assert exc.value.code == "auth/too-many-attempts-try-later"


def test_network_failure(provider, calls):
    _, replies = calls
    replies.append(requests.ConnectionError("offline"))
    with pytest.raises(ProviderUnavailableError) as exc:
        provider.sign_in_with_password("a@example.com", "pw123456")
    assert exc.value.code == "auth/network-request-failed"


def test_federated_sign_in_posts_google_token(provider, calls):
    recorded, replies = calls
    replies.append(_ok(photoUrl="https://img/a.png"))

    cred = FederatedCredential(id_token="google-token", subject="g-1", email="a@example.com")
    result = provider.sign_in_with_credential(cred)
    assert result.identity.photo_url == "https://img/a.png"

    body = recorded[0]["json"]
    assert recorded[0]["url"].endswith("accounts:signInWithIdp")
    assert "id_token=google-token" in body["postBody"]
    assert "providerId=google.com" in body["postBody"]
    assert body["requestUri"] == "http://localhost:8000/cb"


def test_verify_session(provider, monkeypatch):
    monkeypatch.setattr(
        firebase_identity.auth,
        "verify_id_token",
        lambda token, app=None: {"uid": "fb-uid", "email": "a@example.com", "picture": "p"},
    )
    identity = provider.verify_session("tok")
    assert identity.uid == "fb-uid"
    assert identity.photo_url == "p"


def test_verify_session_rejects_invalid_token(provider, monkeypatch):
    def boom(token, app=None):
        raise firebase_identity.auth.InvalidIdTokenError("bad token")

    monkeypatch.setattr(firebase_identity.auth, "verify_id_token", boom)
    assert provider.verify_session("tok") is None


def test_api_key_is_required():
    with pytest.raises(RuntimeError):
        FirebaseIdentityProvider(api_key="", request_uri="http://x")
