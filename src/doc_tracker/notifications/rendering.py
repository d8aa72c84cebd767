"""Reminder mail rendering.

Subject lines and urgency styling are step functions of the number of days
left; they never influence whether a reminder is sent.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from jinja2 import Environment, PackageLoader, select_autoescape

from doc_tracker.config import DEFAULT_NOTIFICATION_INTERVALS
from doc_tracker.models import Urgency

from .eligibility import classify_urgency


@dataclass(frozen=True)
class UrgencyStyle:
    """Colours and wording for one urgency tier."""

    color: str
    bg_color: str
    border_color: str
    icon: str
    label: str


URGENCY_STYLES: dict[Urgency, UrgencyStyle] = {
    Urgency.URGENT: UrgencyStyle("#DC2626", "#FEF2F2", "#DC2626", "🚨", "EXPIRES TOMORROW"),
    Urgency.WARNING: UrgencyStyle("#EA580C", "#FFF7ED", "#EA580C", "⚠️", "EXPIRING SOON"),
    Urgency.REMINDER: UrgencyStyle("#CA8A04", "#FEFCE8", "#CA8A04", "📋", "REMINDER"),
    Urgency.ADVANCE_NOTICE: UrgencyStyle("#0284C7", "#F0F9FF", "#0284C7", "📅", "ADVANCE NOTICE"),
}

TEST_EMAIL_SUBJECT = "✅ DocTracker Email Notifications Activated"

_env = Environment(
    loader=PackageLoader("doc_tracker.notifications", "templates"),
    autoescape=select_autoescape(["html", "j2"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def subject_line(title: str, days_until: int) -> str:
    urgency = classify_urgency(days_until)
    if urgency is Urgency.URGENT:
        return f"🚨 URGENT: {title} expires tomorrow!"
    if urgency is Urgency.WARNING:
        return f"⚠️ {title} expires in {days_until} days"
    if urgency is Urgency.REMINDER:
        return f"📋 Reminder: {title} expires in {days_until} days"
    return f"📅 Advance Notice: {title} expires in {days_until} days"


def days_text(days_until: int) -> str:
    if days_until == 0:
        return "TODAY"
    if days_until == 1:
        return "TOMORROW"
    return f"in {days_until} days"


def next_reminder_text(
    days_until: int,
    intervals: Sequence[int] = DEFAULT_NOTIFICATION_INTERVALS,
) -> str:
    """Describe the reminder that follows the current one."""

    upcoming = sorted((i for i in intervals if i < days_until), reverse=True)
    if not upcoming:
        return "This is your final reminder"

    nearest = upcoming[0]
    if nearest == 1:
        return "1 day before expiry (final reminder)"
    return f"{nearest} days before expiry"


def format_long_date(value: date) -> str:
    """Render e.g. 'Saturday, March 16, 2024'."""

    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def describe_schedule(intervals: Sequence[int]) -> list[str]:
    return [f"{d} day{'s' if d > 1 else ''} before expiry" for d in intervals]


def render_reminder_html(
    *,
    user_name: str,
    document_title: str,
    document_type: str,
    expiration_date: date,
    days_until: int,
    intervals: Sequence[int],
    app_url: str,
) -> str:
    """Render the HTML body of an expiry reminder."""

    template = _env.get_template("reminder.html.j2")
    return template.render(
        style=URGENCY_STYLES[classify_urgency(days_until)],
        user_name=user_name,
        document_title=document_title,
        document_type=document_type,
        formatted_date=format_long_date(expiration_date),
        days_text=days_text(days_until),
        show_next_reminder=days_until > 1,
        next_reminder=next_reminder_text(days_until, intervals),
        app_url=app_url.rstrip("/"),
    )


def render_test_html(*, recipient: str, intervals: Sequence[int], app_url: str) -> str:
    """Render the HTML body of the one-off 'notifications activated' mail."""

    template = _env.get_template("test.html.j2")
    return template.render(
        recipient=recipient,
        schedule=describe_schedule(intervals),
        app_url=app_url.rstrip("/"),
    )
