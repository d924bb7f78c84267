from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Form, Request

from quicknotes.api.deps import get_browser, get_notes_store, require_identity
from quicknotes.api.responses import redirect, render
from quicknotes.models.auth import UserIdentity
from quicknotes.session.registry import BrowserSession
from quicknotes.storage.notes_store import NotesStore
from quicknotes.views.home import HomeView, preview

router = APIRouter(tags=["notes"])


def _text(value: Optional[str]) -> Optional[str]:
    # browsers submit textarea line breaks as CRLF
    return value.replace("\r\n", "\n") if value is not None else None


def get_home(
    identity: UserIdentity = Depends(require_identity),
    browser: BrowserSession = Depends(get_browser),
    notes: NotesStore = Depends(get_notes_store),
) -> HomeView:
    return browser.home_for(identity, notes)


@router.get("/")
def home(
    request: Request,
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    # a page load is a fresh mount of the list
    view.fetch_notes()
    return render(request, browser, "home.html", {"view": view, "preview": preview})


@router.post("/notes")
def add_note(
    request: Request,
    title: str = Form(""),
    content: str = Form(""),
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.add_note(title, _text(content))
    return redirect(request, browser, "/")


@router.post("/notes/{note_id}/select")
def select_note(
    request: Request,
    note_id: str,
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.select_note(note_id)
    return redirect(request, browser, "/")


@router.post("/notes/{note_id}/menu")
def toggle_note_menu(
    request: Request,
    note_id: str,
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.toggle_menu(note_id)
    return redirect(request, browser, "/")


@router.post("/notes/{note_id}/delete")
def delete_note(
    request: Request,
    note_id: str,
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.delete_note(note_id)
    return redirect(request, browser, "/")


@router.post("/editor")
def edit_buffer(
    request: Request,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.edit(title=title, content=_text(content))
    return redirect(request, browser, "/")


@router.post("/editor/close")
def close_editor(
    request: Request,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.edit(title=title, content=_text(content))
    view.close_modal()
    return redirect(request, browser, "/")


@router.post("/editor/menu")
def toggle_editor_menu(
    request: Request,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.edit(title=title, content=_text(content))
    view.toggle_modal_menu()
    return redirect(request, browser, "/")


@router.post("/editor/delete")
def delete_selected(
    request: Request,
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.delete_selected()
    return redirect(request, browser, "/")


@router.post("/dismiss")
def dismiss_menus(
    request: Request,
    view: HomeView = Depends(get_home),
    browser: BrowserSession = Depends(get_browser),
):
    view.dismiss_menus()
    return redirect(request, browser, "/")
