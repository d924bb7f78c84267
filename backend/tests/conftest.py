import os

# auth_hash reads this at import; keep bcrypt cheap in tests
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from quicknotes.config import load_settings
from quicknotes.main import create_app
from quicknotes.providers.local_identity import LocalIdentityProvider
from quicknotes.storage.document_store import JsonDocumentStore
from quicknotes.storage.notes_store import NotesStore
from quicknotes.storage.users_store import UsersStore


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    # isolate data dir and secrets per test
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("JWT_SECRET", "dev-secret-for-tests")
    monkeypatch.setenv("QUICKNOTES_BACKEND", "local")
    monkeypatch.setenv("COOKIE_SECURE", "false")
    monkeypatch.delenv("JWT_EXP_MINUTES", raising=False)
    monkeypatch.delenv("OAUTH_GOOGLE_CLIENT_ID", raising=False)
    monkeypatch.delenv("OAUTH_GOOGLE_CLIENT_SECRET", raising=False)
    return tmp_path


@pytest.fixture()
def settings(data_dir):
    return load_settings()


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def other_client(app):
    # a second browser against the same app
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def document_store(data_dir):
    return JsonDocumentStore(data_dir)


@pytest.fixture()
def notes_store(document_store):
    return NotesStore(document_store)


@pytest.fixture()
def provider(data_dir):
    return LocalIdentityProvider(UsersStore(data_dir))
