from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from quicknotes.errors import DocumentNotFoundError, DocumentStoreError

logger = logging.getLogger(__name__)

Document = tuple[str, dict[str, Any]]


class DocumentStore(ABC):
    """Minimal document database: named collections of JSON-like records."""

    @abstractmethod
    def add(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document and return its generated id."""

    @abstractmethod
    def query(
        self,
        collection: str,
        field: str,
        value: Any,
        order_by: str,
        descending: bool = True,
    ) -> list[Document]:
        """Documents where `field == value`, sorted on `order_by`."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge `fields` into an existing document."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document. Missing ids are ignored."""


def _safe_segment(name: str, what: str) -> str:
    # avoid path traversal through collection names or ids
    if not name or any(ch in name for ch in ("/", "\\")) or ".." in name:
        raise DocumentStoreError(f"Invalid {what}: {name!r}")
    return name


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)


class JsonDocumentStore(DocumentStore):
    """File-backed store: <base_dir>/collections/<collection>/<id>.json"""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        # serializes read-modify-write in update(); requests run in a threadpool
        self._lock = threading.Lock()

    def _collection_dir(self, collection: str) -> Path:
        return self.base_dir / "collections" / _safe_segment(collection, "collection")

    def _doc_path(self, collection: str, doc_id: str) -> Path:
        return self._collection_dir(collection) / f"{_safe_segment(doc_id, 'document id')}.json"

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        try:
            _atomic_write_json(self._doc_path(collection, doc_id), dict(data))
        except OSError as exc:
            raise DocumentStoreError(f"Cannot write to {collection}: {exc}") from exc
        return doc_id

    def query(
        self,
        collection: str,
        field: str,
        value: Any,
        order_by: str,
        descending: bool = True,
    ) -> list[Document]:
        coll_dir = self._collection_dir(collection)
        if not coll_dir.exists():
            return []

        out: list[Document] = []
        try:
            paths = sorted(coll_dir.glob("*.json"))
        except OSError as exc:
            raise DocumentStoreError(f"Cannot read {collection}: {exc}") from exc

        for p in paths:
            try:
                raw = json.loads(p.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.warning("Skipping unreadable document %s", p)
                continue
            if not isinstance(raw, dict) or raw.get(field) != value:
                continue
            out.append((p.stem, raw))

        # documents without the sort field go last, like a missing index entry
        with_key = [d for d in out if d[1].get(order_by) is not None]
        without_key = [d for d in out if d[1].get(order_by) is None]
        with_key.sort(key=lambda d: d[1][order_by], reverse=descending)
        return with_key + without_key

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        path = self._doc_path(collection, doc_id)
        with self._lock:
            if not path.exists():
                raise DocumentNotFoundError(f"No document {collection}/{doc_id}")
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                raw.update(fields)
                _atomic_write_json(path, raw)
            except (OSError, ValueError) as exc:
                raise DocumentStoreError(f"Cannot update {collection}/{doc_id}: {exc}") from exc

    def delete(self, collection: str, doc_id: str) -> None:
        path = self._doc_path(collection, doc_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise DocumentStoreError(f"Cannot delete {collection}/{doc_id}: {exc}") from exc
