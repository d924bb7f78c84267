from __future__ import annotations

import hashlib
import json
import os
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _email_key(email: str) -> str:
    # emails contain characters we don't want in file names
    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()


@dataclass
class UserRecord:
    uid: str
    email: str
    hashed_password: Optional[str]
    created_at: str
    providers: list[str] = field(default_factory=list)
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class UsersStore:
    """Accounts of the local identity provider, one JSON file per email."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def _user_path(self, email: str) -> Path:
        return self.base_dir / "accounts" / f"{_email_key(email)}.json"

    def _write(self, p: Path, rec: UserRecord) -> None:
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(asdict(rec), f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(p)

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        p = self._user_path(email)
        if not p.exists():
            return None
        raw = json.loads(p.read_text(encoding="utf-8"))
        return UserRecord(
            uid=raw["uid"],
            email=raw["email"],
            hashed_password=raw.get("hashed_password"),
            created_at=raw["created_at"],
            providers=list(raw.get("providers", [])),
            display_name=raw.get("display_name"),
            photo_url=raw.get("photo_url"),
        )

    def create(
        self,
        email: str,
        hashed_password: Optional[str],
        provider: str,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> UserRecord:
        p = self._user_path(email)
        if p.exists():
            raise FileExistsError("User exists")

        rec = UserRecord(
            uid=uuid.uuid4().hex,
            email=normalize_email(email),
            hashed_password=hashed_password,
            created_at=datetime.now(timezone.utc).isoformat(),
            providers=[provider],
            display_name=display_name,
            photo_url=photo_url,
        )
        self._write(p, rec)
        return rec

    def save(self, rec: UserRecord) -> None:
        self._write(self._user_path(rec.email), rec)
