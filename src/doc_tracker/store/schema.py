"""Schema bootstrap for the notifier's tables.

The documents and user_profiles tables belong to other parts of DocTracker
in production; creating them here keeps local development and tests
self-contained. Every statement is idempotent.

Dates are stored as ISO-8601 text so the same statements work on SQLite
and Postgres.
"""

from __future__ import annotations

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from doc_tracker.exceptions import DataAccessError

_DDL = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL DEFAULT '',
        type TEXT NOT NULL DEFAULT 'Other',
        expiration_date TEXT
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_documents_expiration_date
        ON documents(expiration_date)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_documents_user_id
        ON documents(user_id)
    """,
    """
    CREATE TABLE IF NOT EXISTS user_profiles (
        id TEXT PRIMARY KEY,
        email TEXT,
        metadata_json TEXT NOT NULL DEFAULT '{}'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notification_ledger (
        document_id TEXT NOT NULL,
        interval_days INTEGER NOT NULL,
        run_date TEXT NOT NULL,
        user_id TEXT NOT NULL,
        claimed_at TEXT NOT NULL,
        PRIMARY KEY (document_id, interval_days, run_date)
    )
    """,
)


def create_store_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for the configured store."""

    return create_engine(database_url)


def ensure_schema(engine: Engine) -> None:
    """Ensure required tables exist (idempotent).

    Args:
        engine: SQLAlchemy engine bound to the store.

    Raises:
        DataAccessError: If the store cannot be reached.
    """

    try:
        with engine.begin() as conn:
            for statement in _DDL:
                conn.execute(text(statement))
    except SQLAlchemyError as exc:
        raise DataAccessError(f"Failed to initialize schema: {exc}") from exc
