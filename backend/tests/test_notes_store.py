import logging
from datetime import datetime

import pytest

from quicknotes.errors import DocumentNotFoundError, DocumentStoreError
from quicknotes.models.notes import NoteDraft
from quicknotes.storage import notes_store as notes_module
from quicknotes.storage.document_store import JsonDocumentStore
from quicknotes.storage.notes_store import NotesStore


class BrokenStore(JsonDocumentStore):
    def add(self, collection, data):
        raise DocumentStoreError("backend down")

    def query(self, collection, field, value, order_by, descending=True):
        raise DocumentStoreError("backend down")

    def delete(self, collection, doc_id):
        raise DocumentStoreError("backend down")


def _parse(ts):
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


def test_groceries_scenario(notes_store):
    notes_store.add_note("u1", NoteDraft(title="Groceries", content="milk, eggs"))

    [note] = notes_store.get_user_notes("u1")
    assert note.title == "Groceries"
    assert note.content == "milk, eggs"
    assert note.id
    assert note.created_at
    assert note.updated_at is None

    notes_store.update_note("u1", note.id, NoteDraft(title="Groceries", content="milk, eggs, bread"))
    [updated] = notes_store.get_user_notes("u1")
    assert updated.content == "milk, eggs, bread"
    assert updated.title == "Groceries"
    assert _parse(updated.updated_at) > _parse(updated.created_at)
    assert updated.created_at == note.created_at

    notes_store.delete_note("u1", note.id)
    assert notes_store.get_user_notes("u1") == []


def test_notes_are_scoped_to_owner(notes_store):
    notes_store.add_note("u1", NoteDraft(title="a", content="1"))
    notes_store.add_note("u2", NoteDraft(title="b", content="2"))
    notes_store.add_note("u1", NoteDraft(title="c", content="3"))

    notes = notes_store.get_user_notes("u1")
    assert len(notes) == 2
    assert all(n.user_id == "u1" for n in notes)
    assert notes_store.get_user_notes("nobody") == []


def test_notes_are_newest_first(notes_store, monkeypatch):
    stamps = iter([
        "2024-05-01T10:00:00.000000Z",
        "2024-05-03T10:00:00.000000Z",
        "2024-05-02T10:00:00.000000Z",
    ])
    monkeypatch.setattr(notes_module, "_utc_now_iso", lambda: next(stamps))
    for title in ("first", "third", "second"):
        notes_store.add_note("u1", NoteDraft(title=title, content="x"))

    notes = notes_store.get_user_notes("u1")
    assert [n.title for n in notes] == ["third", "second", "first"]
    created = [n.created_at for n in notes]
    assert created == sorted(created, reverse=True)


@pytest.mark.parametrize("stored", [{}, {"title": None}, {"title": ""}])
def test_missing_title_reads_as_untitled(document_store, notes_store, stored):
    document_store.add("notes", {"userId": "u1", "content": "body", "createdAt": "1", **stored})

    [note] = notes_store.get_user_notes("u1")
    assert note.title == "Untitled"
    assert note.content == "body"


def test_untitled_fallback_is_not_written_back(document_store, notes_store):
    doc_id = document_store.add("notes", {"userId": "u1", "content": "body", "createdAt": "1"})
    notes_store.get_user_notes("u1")
    [(_, raw)] = document_store.query("notes", "userId", "u1", order_by="createdAt")
    assert raw.get("title") is None
    assert doc_id


def test_fetch_failure_degrades_to_empty_list(data_dir, caplog):
    store = NotesStore(BrokenStore(data_dir))
    with caplog.at_level(logging.ERROR, logger="quicknotes.storage.notes_store"):
        assert store.get_user_notes("u1") == []
    assert "Fetch notes failed" in caplog.text


def test_mutation_failures_propagate(data_dir, caplog):
    store = NotesStore(BrokenStore(data_dir))
    with pytest.raises(DocumentStoreError):
        store.add_note("u1", NoteDraft(title="t", content="c"))
    with pytest.raises(DocumentStoreError):
        store.delete_note("u1", "n1")
    assert "Add note failed" in caplog.text


def test_update_of_missing_note_propagates(notes_store):
    with pytest.raises(DocumentNotFoundError):
        notes_store.update_note("u1", "missing", NoteDraft(title="t", content="c"))
