"""Expiry reminder engine.

This package decides which documents are due a reminder today and hands
the rendered reminders to the delivery channel.
"""

from .eligibility import classify_urgency, days_until, is_eligible, local_today
from .policy import PolicyResolver, build_policy, resolve_display_name, resolve_intervals
from .preview import preview_user
from .runner import MailTransport, NotificationRunner, check_trigger_secret
from .service import NotificationService

__all__ = [
    "MailTransport",
    "NotificationRunner",
    "NotificationService",
    "PolicyResolver",
    "build_policy",
    "check_trigger_secret",
    "classify_urgency",
    "days_until",
    "is_eligible",
    "local_today",
    "preview_user",
    "resolve_display_name",
    "resolve_intervals",
]
