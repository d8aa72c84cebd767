"""Data models for the DocTracker notifier.

This module contains Pydantic models for data validation and serialization.
"""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from .document import Document


class Urgency(str, Enum):
    """Presentation tier of a reminder, derived from days until expiry."""

    URGENT = "urgent"
    WARNING = "warning"
    REMINDER = "reminder"
    ADVANCE_NOTICE = "advance_notice"


class RunStatus(str, Enum):
    """Terminal outcome of a notification run."""

    COMPLETED = "completed"
    FAILED = "failed"
    UNAUTHORIZED = "unauthorized"


class RunState(str, Enum):
    """States a notification run moves through."""

    IDLE = "idle"
    AUTHORIZING = "authorizing"
    LOADING = "loading"
    RESOLVING = "resolving"
    EVALUATING = "evaluating"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"
    FAILED = "failed"


class UserRecord(BaseModel):
    """A user profile row as stored by the identity side of DocTracker."""

    id: str = Field(description="User ID")
    email: Optional[str] = Field(default=None, description="Primary email address")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form profile settings (name, email_notifications, notification_intervals)",
    )


class NotificationPolicy(BaseModel):
    """Resolved, validated reminder settings for one user."""

    user_id: str = Field(description="User ID")
    email: str = Field(description="Delivery address")
    display_name: str = Field(description="Name used in the greeting")
    notifications_enabled: bool = Field(default=True, description="Master reminder switch")
    intervals: list[int] = Field(description="Distinct positive day offsets, sorted descending")


class Eligibility(BaseModel):
    """Result of checking one document against an interval list."""

    eligible: bool = Field(description="Whether a reminder is due today")
    days_until: int = Field(description="Whole calendar days until expiry (negative once expired)")
    matched_interval: Optional[int] = Field(default=None, description="Interval that matched")


class NotificationEvent(BaseModel):
    """A rendered reminder ready for delivery. Never persisted."""

    document_id: str = Field(description="Document the reminder is about")
    user_id: str = Field(description="Recipient user ID")
    email: str = Field(description="Recipient address")
    days_until: int = Field(description="Days until expiry at evaluation time")
    interval: int = Field(description="Interval that triggered the reminder")
    urgency: Urgency = Field(description="Presentation tier")
    subject: str = Field(description="Rendered subject line")
    html: str = Field(description="Rendered HTML body")


class RunSummary(BaseModel):
    """Counts reported by a completed run."""

    message: str = Field(default="Notification job completed", description="Human readable outcome")
    sent: int = Field(default=0, description="Reminders delivered")
    skipped: int = Field(default=0, description="Documents that did not produce a delivery attempt")
    total: int = Field(default=0, description="Candidate documents considered")
    errors: list[str] = Field(default_factory=list, description="Per-delivery failure messages")


class RunResult(BaseModel):
    """Outcome of one run: a summary on completion, an error otherwise."""

    status: RunStatus = Field(description="Terminal status")
    summary: Optional[RunSummary] = Field(default=None, description="Present when completed")
    error: Optional[str] = Field(default=None, description="Present when failed or unauthorized")
    details: Optional[str] = Field(default=None, description="Underlying failure detail")


class UpcomingNotification(BaseModel):
    """A reminder a document will receive in the future."""

    days_before_expiry: int
    notification_date: date
    already_sent: bool = False


class DocumentPreview(BaseModel):
    """A document with its reminder schedule."""

    id: str
    title: str
    type: str
    expiration_date: date
    days_until_expiry: int
    upcoming_notifications: list[UpcomingNotification] = Field(default_factory=list)


class UserPreview(BaseModel):
    """Read-only view of when a user's documents will trigger reminders."""

    user_id: str
    expiring_count: int
    notification_intervals: list[int]
    default_intervals: list[int]
    documents: list[DocumentPreview] = Field(default_factory=list)


__all__ = [
    "Document",
    "DocumentPreview",
    "Eligibility",
    "NotificationEvent",
    "NotificationPolicy",
    "RunResult",
    "RunState",
    "RunStatus",
    "RunSummary",
    "UpcomingNotification",
    "Urgency",
    "UserPreview",
    "UserRecord",
]
