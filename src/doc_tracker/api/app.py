"""FastAPI application factory.

Run locally with:

    uvicorn doc_tracker.api.app:create_app --factory --port 8000
"""

from __future__ import annotations

from fastapi import FastAPI

from doc_tracker.config import Settings, get_settings
from doc_tracker.notifications import NotificationService
from doc_tracker.utils import configure_logging

from .notifications import router as notifications_router


def create_app(
    settings: Settings | None = None,
    service: NotificationService | None = None,
) -> FastAPI:
    """Build the API with its collaborators constructed up front.

    Args:
        settings: Application settings. If None, uses default settings.
        service: Pre-built service (tests pass one with a fake transport).
            If None, one is built from settings, creating the schema and
            the Gmail client.
    """

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title="DocTracker Notifier")
    app.state.settings = settings
    app.state.service = service or NotificationService.from_settings(settings)

    app.include_router(notifications_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
