"""State of the Home page: note list, add form, editor modal and menus.

One HomeView exists per signed-in browser session. Every mutation is
followed by a full refetch; nothing is patched locally.
"""
from __future__ import annotations

import logging
from typing import Optional

from quicknotes.errors import DocumentStoreError
from quicknotes.models.auth import UserIdentity
from quicknotes.models.notes import NoteDraft
from quicknotes.storage.notes_store import DEFAULT_TITLE, Note, NotesStore

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100

EMPTY_NOTE_ERROR = "Note can't be empty"
ADD_FAILED_ERROR = "Failed to add note."
DELETE_FAILED_ERROR = "Failed to delete note."


def preview(note: Note) -> str:
    if len(note.content) > PREVIEW_LENGTH:
        return note.content[:PREVIEW_LENGTH] + "..."
    return note.content


class HomeView:
    def __init__(self, notes: NotesStore, user: UserIdentity):
        self.store = notes
        self.user = user

        self.notes: list[Note] = []
        self.new_title = ""
        self.new_note = ""
        self.is_adding = False
        self.is_fetching = False
        self.error = ""

        self.selected_note: Optional[Note] = None
        self.edited_title = ""
        self.edited_content = ""

        self.menu_open_id: Optional[str] = None
        self.modal_menu_open = False

    def fetch_notes(self) -> None:
        self.is_fetching = True
        try:
            # get_user_notes already degrades failures to []
            self.notes = self.store.get_user_notes(self.user.uid)
        finally:
            self.is_fetching = False

    def _find(self, note_id: str) -> Optional[Note]:
        return next((n for n in self.notes if n.id == note_id), None)

    # -- add form ---------------------------------------------------------

    def add_note(self, title: str, content: str) -> bool:
        """Submit the add form. Returns True when a note was stored."""
        self.new_title = title
        self.new_note = content

        if self.is_adding:
            # button is disabled while a request is in flight
            return False
        if not content.strip():
            self.error = EMPTY_NOTE_ERROR
            return False

        title_to_use = title.strip() or DEFAULT_TITLE
        self.is_adding = True
        self.error = ""
        try:
            self.store.add_note(self.user.uid, NoteDraft(title=title_to_use, content=content))
        except DocumentStoreError:
            self.error = ADD_FAILED_ERROR
            return False
        finally:
            self.is_adding = False

        self.new_note = ""
        self.new_title = ""
        self.fetch_notes()
        return True

    # -- list items -------------------------------------------------------

    def toggle_menu(self, note_id: str) -> None:
        self.menu_open_id = None if self.menu_open_id == note_id else note_id

    def dismiss_menus(self) -> None:
        self.menu_open_id = None
        self.modal_menu_open = False

    def delete_note(self, note_id: str) -> None:
        self.menu_open_id = None
        try:
            self.store.delete_note(self.user.uid, note_id)
        except DocumentStoreError:
            self.error = DELETE_FAILED_ERROR
            return
        self.fetch_notes()

    # -- editor modal -----------------------------------------------------

    def select_note(self, note_id: str) -> bool:
        note = self._find(note_id)
        if note is None:
            return False
        self.menu_open_id = None
        self.selected_note = note
        self.edited_title = note.title
        self.edited_content = note.content
        return True

    def edit(self, title: Optional[str] = None, content: Optional[str] = None) -> None:
        if self.selected_note is None:
            return
        if title is not None:
            self.edited_title = title
        if content is not None:
            self.edited_content = content

    def toggle_modal_menu(self) -> None:
        if self.selected_note is not None:
            self.modal_menu_open = not self.modal_menu_open

    def close_modal(self) -> None:
        """Auto-save on close: one update if title or content changed."""
        note = self.selected_note
        if note is None:
            return

        content_changed = self.edited_content.strip() != note.content.strip()
        title_changed = self.edited_title.strip() != note.title.strip()
        if content_changed or title_changed:
            try:
                self.store.update_note(
                    self.user.uid,
                    note.id,
                    NoteDraft(title=self.edited_title, content=self.edited_content),
                )
            except DocumentStoreError:
                logger.error("Auto save failed for note %s", note.id)

        self.selected_note = None
        self.modal_menu_open = False
        self.fetch_notes()

    def delete_selected(self) -> None:
        note = self.selected_note
        if note is None:
            return
        self.selected_note = None
        self.modal_menu_open = False
        self.delete_note(note.id)
