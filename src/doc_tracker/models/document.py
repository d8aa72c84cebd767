"""Tracked document model.

Documents are owned by the document-management side of DocTracker; the
notifier only ever reads them.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A tracked document as seen by the reminder engine."""

    id: str = Field(description="Document ID")
    user_id: str = Field(description="Owning user ID")
    title: str = Field(default="", description="User supplied title")
    type: str = Field(default="Other", description="Document type, e.g. Passport or Insurance")

    # Documents without an expiry never reach the reminder engine.
    expiration_date: date | None = Field(default=None, description="Calendar expiry date")
