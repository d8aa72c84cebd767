"""Reminder eligibility.

Pure date arithmetic: given a document's expiry, the reference day and a
user's interval list, decide whether a reminder is due today.

Reminders fire on exact interval matches only. A document 10 days out with
intervals [30, 15, 7, 1] gets nothing today; it gets one reminder 7 days
out and another 1 day out.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from doc_tracker.models import Eligibility, Urgency


def to_calendar_date(value: date | datetime) -> date:
    """Strip the time of day, keeping the calendar date as given."""

    if isinstance(value, datetime):
        return value.date()
    return value


def days_until(expiration: date | datetime, now: date | datetime) -> int:
    """Whole calendar days from ``now`` until ``expiration``.

    Both sides are reduced to midnight first, so the result is stable for
    the whole day: something expiring later today is 0, anything tomorrow
    is 1, and expired documents are negative.
    """

    return (to_calendar_date(expiration) - to_calendar_date(now)).days


def is_eligible(
    expiration: date | datetime,
    now: date | datetime,
    intervals: Iterable[int],
) -> Eligibility:
    """Check whether ``expiration`` is exactly one configured interval away.

    Args:
        expiration: Document expiry date.
        now: Reference day of the run.
        intervals: Day offsets before expiry at which reminders fire.

    Returns:
        Eligibility with the computed day count and the matched interval.
    """

    remaining = days_until(expiration, now)
    matched = remaining if remaining in set(intervals) else None
    return Eligibility(
        eligible=matched is not None,
        days_until=remaining,
        matched_interval=matched,
    )


def classify_urgency(remaining: int) -> Urgency:
    """Map days until expiry to a presentation tier."""

    if remaining <= 1:
        return Urgency.URGENT
    if remaining <= 7:
        return Urgency.WARNING
    if remaining <= 15:
        return Urgency.REMINDER
    return Urgency.ADVANCE_NOTICE


def local_today(tz_name: str = "UTC") -> date:
    """Today's calendar date in the given IANA zone."""

    return datetime.now(ZoneInfo(tz_name)).date()
