from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# Base data dir: repository_root/data (we are in backend/quicknotes/)
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    backend: str
    backend_url: str
    session_cookie_name: str
    client_cookie_name: str
    cookie_secure: bool
    log_level: str
    max_browser_sessions: int
    browser_idle_seconds: int
    google_client_id: str | None
    google_client_secret: str | None
    firebase_api_key: str | None
    firebase_credentials: str | None
    firebase_project_id: str | None

    @property
    def oauth_redirect_uri(self) -> str:
        return f"{self.backend_url.rstrip('/')}/login/federated/callback"


def load_settings() -> Settings:
    backend = os.getenv("QUICKNOTES_BACKEND", "local").strip().lower()
    if backend not in ("local", "firebase"):
        raise RuntimeError(f"Unsupported QUICKNOTES_BACKEND: {backend!r}")

    return Settings(
        data_dir=Path(os.getenv("APP_DATA_DIR", str(DEFAULT_DATA_DIR))),
        backend=backend,
        backend_url=os.getenv("BACKEND_URL", "http://localhost:8000"),
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "qn_session"),
        client_cookie_name=os.getenv("CLIENT_COOKIE_NAME", "qn_client"),
        cookie_secure=_flag("COOKIE_SECURE", "false"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        max_browser_sessions=int(os.getenv("MAX_BROWSER_SESSIONS", "10000")),
        browser_idle_seconds=int(os.getenv("BROWSER_IDLE_SECONDS", str(24 * 60 * 60))),
        google_client_id=os.getenv("OAUTH_GOOGLE_CLIENT_ID"),
        google_client_secret=os.getenv("OAUTH_GOOGLE_CLIENT_SECRET"),
        firebase_api_key=os.getenv("FIREBASE_API_KEY"),
        firebase_credentials=os.getenv("FIREBASE_CREDENTIALS"),
        firebase_project_id=os.getenv("FIREBASE_PROJECT_ID"),
    )
