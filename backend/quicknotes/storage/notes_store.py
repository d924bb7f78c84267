from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from quicknotes.errors import DocumentStoreError
from quicknotes.models.notes import NoteDraft
from quicknotes.storage.document_store import DocumentStore

logger = logging.getLogger(__name__)

NOTES_COLLECTION = "notes"
DEFAULT_TITLE = "Untitled"


def _utc_now_iso() -> str:
    # fixed width so string order == time order
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Note:
    id: str
    user_id: str
    title: str
    content: str
    created_at: str
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Note":
        """Build a Note from a stored record; title fallback is applied here only."""
        return cls(
            id=doc_id,
            user_id=data.get("userId", ""),
            title=data.get("title") or DEFAULT_TITLE,
            content=data.get("content") or "",
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class NotesStore:
    """Gateway over the `notes` collection.

    Listing is lenient: a store failure is logged and yields an empty list.
    Every mutation logs and re-raises.
    """

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    def add_note(self, owner_id: str, draft: NoteDraft) -> str:
        try:
            return self.documents.add(
                NOTES_COLLECTION,
                {
                    "userId": owner_id,
                    "title": draft.title,
                    "content": draft.content,
                    "createdAt": _utc_now_iso(),
                },
            )
        except DocumentStoreError:
            logger.exception("Add note failed for user %s", owner_id)
            raise

    def get_user_notes(self, owner_id: str) -> list[Note]:
        try:
            docs = self.documents.query(
                NOTES_COLLECTION,
                field="userId",
                value=owner_id,
                order_by="createdAt",
                descending=True,
            )
        except DocumentStoreError:
            logger.exception("Fetch notes failed for user %s", owner_id)
            return []
        return [Note.from_document(doc_id, data) for doc_id, data in docs]

    def update_note(self, owner_id: str, note_id: str, draft: NoteDraft) -> None:
        # owner_id is not re-checked here; backend access rules own that
        try:
            self.documents.update(
                NOTES_COLLECTION,
                note_id,
                {
                    "title": draft.title,
                    "content": draft.content,
                    "updatedAt": _utc_now_iso(),
                },
            )
        except DocumentStoreError:
            logger.exception("Update note %s failed for user %s", note_id, owner_id)
            raise

    def delete_note(self, owner_id: str, note_id: str) -> None:
        try:
            self.documents.delete(NOTES_COLLECTION, note_id)
        except DocumentStoreError:
            logger.exception("Delete note %s failed for user %s", note_id, owner_id)
            raise
