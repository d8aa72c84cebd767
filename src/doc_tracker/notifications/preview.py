"""Read-only reminder schedule for one user."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta

from doc_tracker.models import DocumentPreview, UpcomingNotification, UserPreview
from doc_tracker.store import DocumentRepository, UserDirectory

from .eligibility import days_until
from .policy import PolicyResolver


def upcoming_notifications(
    expiration: date,
    remaining: int,
    intervals: Sequence[int],
) -> list[UpcomingNotification]:
    """Reminders still ahead for a document ``remaining`` days from expiry.

    Today's reminder counts as upcoming, so a document exactly 7 days out
    lists its 7-day reminder dated today.
    """

    return [
        UpcomingNotification(
            days_before_expiry=interval,
            notification_date=expiration - timedelta(days=interval),
            already_sent=False,
        )
        for interval in intervals
        if interval <= remaining
    ]


def preview_user(
    user_id: str,
    *,
    documents: DocumentRepository,
    users: UserDirectory,
    today: date,
    lookahead_days: int,
    default_intervals: Sequence[int],
    max_interval_days: int | None = None,
) -> UserPreview:
    """Build the reminder schedule for one user's soon-to-expire documents.

    Unknown users get the default intervals so the caller still sees what
    would happen under the standard schedule.

    Raises:
        DataAccessError: If the store cannot be read.
    """

    policy = PolicyResolver(users, default_intervals, max_interval_days).resolve(user_id)
    intervals = policy.intervals if policy is not None else sorted(set(default_intervals), reverse=True)

    docs = documents.list_for_user(user_id, today, today + timedelta(days=lookahead_days))

    previews = []
    for doc in docs:
        assert doc.expiration_date is not None
        remaining = days_until(doc.expiration_date, today)
        previews.append(
            DocumentPreview(
                id=doc.id,
                title=doc.title,
                type=doc.type,
                expiration_date=doc.expiration_date,
                days_until_expiry=remaining,
                upcoming_notifications=upcoming_notifications(doc.expiration_date, remaining, intervals),
            )
        )

    return UserPreview(
        user_id=user_id,
        expiring_count=len(previews),
        notification_intervals=intervals,
        default_intervals=list(default_intervals),
        documents=previews,
    )
