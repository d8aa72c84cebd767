"""Storage access for the reminder engine.

The notifier reads documents and user profiles owned by the rest of
DocTracker and owns a single table of its own, the notification ledger.
"""

from .repository import DocumentRepository, NotificationLedger, UserDirectory
from .schema import create_store_engine, ensure_schema

__all__ = [
    "DocumentRepository",
    "NotificationLedger",
    "UserDirectory",
    "create_store_engine",
    "ensure_schema",
]
