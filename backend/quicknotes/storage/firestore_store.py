"""Cloud Firestore implementation of the document store.

Only imported when QUICKNOTES_BACKEND=firebase.
"""
from __future__ import annotations

import logging
from typing import Any

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from quicknotes.errors import DocumentNotFoundError, DocumentStoreError
from quicknotes.storage.document_store import Document, DocumentStore

logger = logging.getLogger(__name__)


class FirestoreDocumentStore(DocumentStore):
    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_app(cls, app: Any) -> "FirestoreDocumentStore":
        return cls(firestore.client(app=app))

    def add(self, collection: str, data: dict[str, Any]) -> str:
        try:
            _, ref = self.client.collection(collection).add(dict(data))
        except google_exceptions.GoogleAPIError as exc:
            raise DocumentStoreError(f"Firestore add failed: {exc}") from exc
        return ref.id

    def query(
        self,
        collection: str,
        field: str,
        value: Any,
        order_by: str,
        descending: bool = True,
    ) -> list[Document]:
        direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
        q = (
            self.client.collection(collection)
            .where(filter=FieldFilter(field, "==", value))
            .order_by(order_by, direction=direction)
        )
        try:
            return [(snap.id, snap.to_dict() or {}) for snap in q.stream()]
        except google_exceptions.GoogleAPIError as exc:
            raise DocumentStoreError(f"Firestore query failed: {exc}") from exc

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        try:
            self.client.collection(collection).document(doc_id).update(dict(fields))
        except google_exceptions.NotFound as exc:
            raise DocumentNotFoundError(f"No document {collection}/{doc_id}") from exc
        except google_exceptions.GoogleAPIError as exc:
            raise DocumentStoreError(f"Firestore update failed: {exc}") from exc

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            self.client.collection(collection).document(doc_id).delete()
        except google_exceptions.GoogleAPIError as exc:
            raise DocumentStoreError(f"Firestore delete failed: {exc}") from exc
