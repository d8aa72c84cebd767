"""Unit tests for reminder rendering."""

from datetime import date

import pytest

from doc_tracker.notifications.rendering import (
    days_text,
    format_long_date,
    next_reminder_text,
    render_reminder_html,
    render_test_html,
    subject_line,
)


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (1, "🚨 URGENT: Passport expires tomorrow!"),
        (7, "⚠️ Passport expires in 7 days"),
        (15, "📋 Reminder: Passport expires in 15 days"),
        (30, "📅 Advance Notice: Passport expires in 30 days"),
    ],
)
def test_subject_line(days: int, expected: str) -> None:
    assert subject_line("Passport", days) == expected


def test_days_text() -> None:
    assert days_text(0) == "TODAY"
    assert days_text(1) == "TOMORROW"
    assert days_text(9) == "in 9 days"


def test_next_reminder_text() -> None:
    assert next_reminder_text(30, [30, 15, 7, 1]) == "15 days before expiry"
    assert next_reminder_text(7, [30, 15, 7, 1]) == "1 day before expiry (final reminder)"
    assert next_reminder_text(1, [30, 15, 7, 1]) == "This is your final reminder"
    assert next_reminder_text(45, [45, 10]) == "10 days before expiry"


def test_format_long_date() -> None:
    assert format_long_date(date(2024, 3, 16)) == "Saturday, March 16, 2024"


def _render(days: int, title: str = "Car Insurance") -> str:
    return render_reminder_html(
        user_name="Alice",
        document_title=title,
        document_type="Insurance",
        expiration_date=date(2024, 3, 16),
        days_until=days,
        intervals=[30, 15, 7, 1],
        app_url="https://doctracker.example.com/",
    )


def test_reminder_html_contents() -> None:
    html = _render(15)

    assert "Hi Alice," in html
    assert "Car Insurance" in html
    assert "Expires in 15 days" in html
    assert "Saturday, March 16, 2024" in html
    assert "REMINDER" in html
    assert "Next reminder: 7 days before expiry" in html
    assert 'href="https://doctracker.example.com/dashboard"' in html


def test_reminder_html_hides_next_reminder_on_last_day() -> None:
    html = _render(1)

    assert "Expires TOMORROW" in html
    assert "EXPIRES TOMORROW" in html
    assert "Next reminder" not in html


def test_reminder_html_escapes_user_content() -> None:
    html = _render(7, title="<script>alert(1)</script>")

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_test_html_lists_schedule() -> None:
    html = render_test_html(recipient="bob@example.com", intervals=[30, 1], app_url="http://localhost:3000")

    assert "30 days before expiry" in html
    assert "1 day before expiry" in html
    assert "bob@example.com" in html
