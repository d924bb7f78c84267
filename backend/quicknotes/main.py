from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from quicknotes.api import auth, notes
from quicknotes.api.responses import redirect, render
from quicknotes.config import Settings, load_settings
from quicknotes.container import build_services
from quicknotes.session.guard import LoginRequired, SessionPending
from quicknotes.utils.logging_config import setup_logging


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging(settings.log_level)
    services = build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        services.registry.close_all()

    app = FastAPI(title="Quick Notes", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    app.include_router(auth.router)
    app.include_router(notes.router)

    @app.exception_handler(LoginRequired)
    async def login_required(request: Request, exc: LoginRequired):
        return redirect(request, request.state.browser, exc.location)

    @app.exception_handler(SessionPending)
    async def session_pending(request: Request, exc: SessionPending):
        return render(request, request.state.browser, "loading.html")

    @app.get("/health")
    def health():
        return {"ok": True, "backend": settings.backend}

    return app


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    # uvicorn quicknotes.main:create_app --factory
    uvicorn.run("quicknotes.main:create_app", factory=True, host="0.0.0.0", port=port)
