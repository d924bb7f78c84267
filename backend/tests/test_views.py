import importlib
import re

from fastapi.testclient import TestClient

from quicknotes.main import create_app
from quicknotes.models.auth import FederatedCredential
from quicknotes.session.auth_client import AuthClient

PASSWORD = "StrongPassw0rd!"


def signup_and_login(client, email="a@example.com", password=PASSWORD):
    r = client.post("/signup", data={"email": email, "password": password})
    assert r.status_code == 200
    assert "Signed up! Log in now" in r.text

    r = client.post("/login", data={"email": email, "password": password})
    assert r.status_code == 200
    assert f"Welcome <strong>{email}</strong>" in r.text
    return r


def note_ids(html):
    return re.findall(r'data-note-id="([^"]+)"', html)


def test_home_requires_login(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_protected_actions_require_login(client):
    r = client.post("/notes", data={"title": "t", "content": "c"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_login_and_signup_pages_render(client):
    assert "Continue with Google" in client.get("/login").text
    assert "Create an Account" in client.get("/signup").text


def test_bad_login_shows_alert(client):
    client.post("/signup", data={"email": "a@example.com", "password": PASSWORD})
    r = client.post("/login", data={"email": "a@example.com", "password": "wrongwrong"})
    assert r.url.path == "/login"
    assert "Login failed! Check Credentials" in r.text

    # alert is shown once
    assert "Login failed!" not in client.get("/login").text


def test_failed_signup_shows_alert(client):
    r = client.post("/signup", data={"email": "a@example.com", "password": "123"})
    assert r.url.path == "/signup"
    assert "Sign up failed! Try again later" in r.text


def test_groceries_flow(client):
    signup_and_login(client)
    assert "No notes yet" in client.get("/").text

    r = client.post("/notes", data={"title": "Groceries", "content": "milk, eggs"})
    assert "Groceries" in r.text and "milk, eggs" in r.text
    [note_id] = note_ids(r.text)

    # open the editor, change content, close -> auto-save
    r = client.post(f"/notes/{note_id}/select")
    assert 'value="Groceries"' in r.text
    r = client.post("/editor/close", data={"title": "Groceries", "content": "milk, eggs, bread"})
    assert "milk, eggs, bread" in r.text
    assert 'action="/editor/close"' not in r.text

    r = client.post(f"/notes/{note_id}/delete")
    assert note_ids(r.text) == []
    assert "No notes yet" in r.text


def test_empty_note_is_rejected(client):
    signup_and_login(client)
    r = client.post("/notes", data={"title": "t", "content": "   "})
    assert "be empty" in r.text
    assert note_ids(r.text) == []


def test_untitled_default(client):
    signup_and_login(client)
    r = client.post("/notes", data={"title": "", "content": "body"})
    assert "<h3>Untitled</h3>" in r.text


def test_editor_crlf_is_not_a_change(client, app):
    signup_and_login(client)
    r = client.post("/notes", data={"title": "t", "content": "line1\r\nline2"})
    [note_id] = note_ids(r.text)
    client.post(f"/notes/{note_id}/select")
    client.post("/editor/close", data={"title": "t", "content": "line1\r\nline2"})

    documents = app.state.services.documents
    [(doc_id, raw)] = documents.query("notes", "userId", _uid(app), order_by="createdAt")
    assert doc_id == note_id
    assert raw["content"] == "line1\nline2"
    assert "updatedAt" not in raw


def _uid(app):
    provider = app.state.services.provider
    return provider.users.get_by_email("a@example.com").uid


def test_menus(client):
    signup_and_login(client)
    r = client.post("/notes", data={"title": "t", "content": "c"})
    [note_id] = note_ids(r.text)

    r = client.post(f"/notes/{note_id}/menu")
    assert f'action="/notes/{note_id}/delete"' in r.text
    r = client.post("/dismiss")
    assert f'action="/notes/{note_id}/delete"' not in r.text

    client.post(f"/notes/{note_id}/select")
    r = client.post("/editor/menu", data={"title": "t", "content": "c"})
    assert 'formaction="/editor/delete"' in r.text
    r = client.post("/editor/delete")
    assert note_ids(r.text) == []


def test_users_only_see_their_own_notes(client, other_client):
    signup_and_login(client, "a@example.com")
    client.post("/notes", data={"title": "A private", "content": "secret"})

    signup_and_login(other_client, "b@example.com")
    r = other_client.get("/")
    assert "A private" not in r.text
    assert "No notes yet" in r.text


def test_logout(client):
    signup_and_login(client)
    r = client.post("/logout")
    assert r.url.path == "/login"
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 303


def test_session_survives_app_restart(client, settings):
    signup_and_login(client)
    token = client.cookies.get(settings.session_cookie_name)
    assert token

    with TestClient(create_app(settings), cookies={settings.session_cookie_name: token}) as fresh:
        r = fresh.get("/")
        assert "Welcome <strong>a@example.com</strong>" in r.text


def test_pending_session_renders_placeholder(client, monkeypatch):
    monkeypatch.setattr(AuthClient, "initialize", lambda self, persisted_token=None: None)
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 200
    assert "Loading..." in r.text


def test_federated_login_not_configured(client):
    r = client.get("/login/federated")
    assert r.url.path == "/login"
    assert "Google Login failed!" in r.text


class StubOAuth:
    def __init__(self, email="g@example.com", email_verified=True):
        self.codes = []
        self.email = email
        self.email_verified = email_verified

    def authorization_url(self, state):
        return f"https://accounts.example/auth?state={state}"

    def exchange_code(self, code):
        self.codes.append(code)
        return FederatedCredential(id_token="tok", subject="g-1", email=self.email,
                                   photo_url="https://img/g.png", email_verified=self.email_verified)


def test_federated_login_round_trip(client, app):
    oauth = StubOAuth()
    app.state.services.oauth = oauth

    r = client.get("/login/federated", follow_redirects=False)
    assert r.status_code == 303
    state = r.headers["location"].split("state=", 1)[1]

    r = client.get("/login/federated/callback", params={"code": "abc", "state": state})
    assert r.url.path == "/"
    assert "Welcome <strong>g@example.com</strong>" in r.text
    assert 'src="https://img/g.png"' in r.text
    assert oauth.codes == ["abc"]


def test_unverified_google_email_cannot_reach_existing_notes(client, other_client, app):
    signup_and_login(client, "victim@example.com")
    client.post("/notes", data={"title": "Diary", "content": "secret"})

    app.state.services.oauth = StubOAuth(email="victim@example.com", email_verified=False)
    r = other_client.get("/login/federated", follow_redirects=False)
    state = r.headers["location"].split("state=", 1)[1]

    r = other_client.get("/login/federated/callback", params={"code": "abc", "state": state})
    assert r.url.path == "/login"
    assert "Google Login failed!" in r.text
    assert "Diary" not in other_client.get("/").text


def test_federated_login_cancelled(client, app):
    app.state.services.oauth = StubOAuth()
    r = client.get("/login/federated", follow_redirects=False)
    state = r.headers["location"].split("state=", 1)[1]

    r = client.get("/login/federated/callback", params={"error": "access_denied", "state": state})
    assert r.url.path == "/login"
    assert "Google Login failed!" in r.text


def test_federated_callback_rejects_forged_state(client, app):
    oauth = StubOAuth()
    app.state.services.oauth = oauth
    client.get("/login/federated", follow_redirects=False)

    r = client.get("/login/federated/callback", params={"code": "abc", "state": "forged"})
    assert r.url.path == "/login"
    assert oauth.codes == []


def test_health(client):
    assert client.get("/health").json() == {"ok": True, "backend": "local"}


def test_anonymous_visits_do_not_accumulate_sessions(client, app):
    registry = app.state.services.registry
    for _ in range(50):
        client.cookies.clear()
        assert client.get("/login").status_code == 200
        client.get("/", follow_redirects=False)
    assert len(registry) == 0
    assert client.cookies.get("qn_client") is None


def test_logout_forgets_the_browser(client, app):
    registry = app.state.services.registry
    signup_and_login(client)
    client_id = client.cookies.get("qn_client")
    assert client_id in registry

    client.post("/logout")
    assert client_id not in registry
    assert len(registry) == 0


def test_alert_survives_the_redirect_for_a_new_browser(client, app):
    r = client.post("/login", data={"email": "nobody@example.com", "password": "wrongwrong"})
    assert "Login failed! Check Credentials" in r.text
    assert len(app.state.services.registry) == 1


def test_importing_the_app_module_builds_nothing(monkeypatch):
    import quicknotes.main

    # firebase without credentials would fail if the module built an app
    monkeypatch.setenv("QUICKNOTES_BACKEND", "firebase")
    monkeypatch.delenv("FIREBASE_API_KEY", raising=False)
    module = importlib.reload(quicknotes.main)
    assert not hasattr(module, "app")
    assert callable(module.create_app)
