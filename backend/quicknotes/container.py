"""
Builds the concrete provider/store instances for the configured backend.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from quicknotes.config import Settings
from quicknotes.providers.base import IdentityProvider
from quicknotes.session.registry import ClientRegistry
from quicknotes.storage.document_store import DocumentStore
from quicknotes.storage.notes_store import NotesStore
from quicknotes.utils.oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)


@dataclass
class Services:
    provider: IdentityProvider
    documents: DocumentStore
    notes: NotesStore
    oauth: GoogleOAuthClient
    registry: ClientRegistry


def _build_local(settings: Settings) -> tuple[IdentityProvider, DocumentStore]:
    from quicknotes.providers.local_identity import LocalIdentityProvider
    from quicknotes.storage.document_store import JsonDocumentStore
    from quicknotes.storage.users_store import UsersStore

    return LocalIdentityProvider(UsersStore(settings.data_dir)), JsonDocumentStore(settings.data_dir)


def _build_firebase(settings: Settings) -> tuple[IdentityProvider, DocumentStore]:
    from quicknotes.providers.firebase_identity import FirebaseIdentityProvider, get_firebase_app
    from quicknotes.storage.firestore_store import FirestoreDocumentStore

    app = get_firebase_app(settings.firebase_credentials, settings.firebase_project_id)
    provider = FirebaseIdentityProvider(
        api_key=settings.firebase_api_key or "",
        request_uri=settings.oauth_redirect_uri,
        app=app,
    )
    return provider, FirestoreDocumentStore.from_app(app)


def build_services(settings: Settings) -> Services:
    if settings.backend == "firebase":
        provider, documents = _build_firebase(settings)
    else:
        provider, documents = _build_local(settings)
    logger.info("Using %s backend (%s)", settings.backend, type(documents).__name__)

    return Services(
        provider=provider,
        documents=documents,
        notes=NotesStore(documents),
        oauth=GoogleOAuthClient(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.oauth_redirect_uri,
        ),
        registry=ClientRegistry(
            provider,
            max_sessions=settings.max_browser_sessions,
            idle_seconds=settings.browser_idle_seconds,
        ),
    )
