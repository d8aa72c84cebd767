"""DocTracker notifier - document expiration reminders.

This package decides, once per day, which tracked documents are due for a
reminder under each owner's interval policy and delivers those reminders
by email.
"""

__version__ = "0.1.0"
__author__ = "DocTracker"

from doc_tracker.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
