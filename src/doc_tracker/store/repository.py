"""Read access to documents and user profiles, plus the reminder ledger.

All queries go through SQLAlchemy ``text()`` so they run unchanged on the
SQLite store used in development and the hosted Postgres store.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from doc_tracker.exceptions import DataAccessError
from doc_tracker.models import Document, UserRecord

logger = structlog.get_logger()


@contextmanager
def _transaction(engine: Engine, operation: str) -> Iterator[Connection]:
    try:
        with engine.begin() as conn:
            yield conn
    except SQLAlchemyError as exc:
        logger.error("store_operation_failed", operation=operation, error=str(exc))
        raise DataAccessError(f"{operation} failed: {exc}") from exc


def _row_to_document(row: Any) -> Document:
    return Document(
        id=str(row.id),
        user_id=str(row.user_id),
        title=row.title or "",
        type=row.type or "Other",
        expiration_date=row.expiration_date,
    )


def _rows_to_documents(rows: Iterable[Any]) -> list[Document]:
    documents = []
    for row in rows:
        try:
            documents.append(_row_to_document(row))
        except PydanticValidationError as exc:
            # Skip the row; the rest of the batch is still returned.
            logger.warning("document_row_unreadable", document_id=str(row.id), error=str(exc))
    return documents


class DocumentRepository:
    """Repository for the documents table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_expiring(self, start: date, end: date) -> list[Document]:
        """Documents whose expiry falls within ``[start, end]``, inclusive.

        Raises:
            DataAccessError: If the query fails.
        """

        query = text(
            """
            SELECT id, user_id, title, type, expiration_date
            FROM documents
            WHERE expiration_date IS NOT NULL
              AND expiration_date >= :start
              AND expiration_date <= :end
            ORDER BY expiration_date ASC, id ASC
            """
        )
        with _transaction(self._engine, "list_expiring_documents") as conn:
            rows = conn.execute(query, {"start": start.isoformat(), "end": end.isoformat()}).fetchall()

        return _rows_to_documents(rows)

    def list_for_user(self, user_id: str, start: date, end: date) -> list[Document]:
        """One user's documents expiring within ``[start, end]``."""

        query = text(
            """
            SELECT id, user_id, title, type, expiration_date
            FROM documents
            WHERE user_id = :user_id
              AND expiration_date IS NOT NULL
              AND expiration_date >= :start
              AND expiration_date <= :end
            ORDER BY expiration_date ASC, id ASC
            """
        )
        params = {"user_id": user_id, "start": start.isoformat(), "end": end.isoformat()}
        with _transaction(self._engine, "list_user_documents") as conn:
            rows = conn.execute(query, params).fetchall()

        return _rows_to_documents(rows)

    def add(self, document: Document) -> None:
        """Insert or replace a document. Used for seeding and tests."""

        query = text(
            """
            INSERT INTO documents (id, user_id, title, type, expiration_date)
            VALUES (:id, :user_id, :title, :type, :expiration_date)
            ON CONFLICT (id) DO UPDATE SET
                user_id = excluded.user_id,
                title = excluded.title,
                type = excluded.type,
                expiration_date = excluded.expiration_date
            """
        )
        params = {
            "id": document.id,
            "user_id": document.user_id,
            "title": document.title,
            "type": document.type,
            "expiration_date": (
                document.expiration_date.isoformat() if document.expiration_date else None
            ),
        }
        with _transaction(self._engine, "add_document") as conn:
            conn.execute(query, params)


class UserDirectory:
    """Read access to user profiles."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get_user(self, user_id: str) -> UserRecord | None:
        """Fetch a profile, or None when no such user exists.

        Raises:
            DataAccessError: If the query fails.
        """

        query = text("SELECT id, email, metadata_json FROM user_profiles WHERE id = :id")
        with _transaction(self._engine, "get_user") as conn:
            row = conn.execute(query, {"id": user_id}).fetchone()

        if row is None:
            return None

        try:
            metadata = json.loads(row.metadata_json or "{}")
        except json.JSONDecodeError:
            logger.warning("user_metadata_unreadable", user_id=user_id)
            metadata = {}
        if not isinstance(metadata, dict):
            metadata = {}

        return UserRecord(id=str(row.id), email=row.email, metadata=metadata)

    def upsert_user(self, user: UserRecord) -> None:
        """Insert or replace a profile. Used for seeding and tests."""

        query = text(
            """
            INSERT INTO user_profiles (id, email, metadata_json)
            VALUES (:id, :email, :metadata_json)
            ON CONFLICT (id) DO UPDATE SET
                email = excluded.email,
                metadata_json = excluded.metadata_json
            """
        )
        params = {"id": user.id, "email": user.email, "metadata_json": json.dumps(user.metadata)}
        with _transaction(self._engine, "upsert_user") as conn:
            conn.execute(query, params)


class NotificationLedger:
    """At-most-once record of reminders, keyed by document, interval and day.

    A delivery first claims its key. The insert is conditional, so when two
    runs race on the same day only one of them wins the claim. A failed
    delivery releases its claim so a later run that day may try again.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def claim(self, document_id: str, interval_days: int, run_date: date, user_id: str) -> bool:
        """Claim a reminder slot. Returns False when it was already taken."""

        query = text(
            """
            INSERT INTO notification_ledger (document_id, interval_days, run_date, user_id, claimed_at)
            VALUES (:document_id, :interval_days, :run_date, :user_id, :claimed_at)
            ON CONFLICT (document_id, interval_days, run_date) DO NOTHING
            """
        )
        params = {
            "document_id": document_id,
            "interval_days": int(interval_days),
            "run_date": run_date.isoformat(),
            "user_id": user_id,
            "claimed_at": datetime.now(timezone.utc).isoformat(),
        }
        with _transaction(self._engine, "claim_notification") as conn:
            result = conn.execute(query, params)

        return result.rowcount == 1

    def release(self, document_id: str, interval_days: int, run_date: date) -> None:
        """Drop a claim after a failed delivery."""

        query = text(
            """
            DELETE FROM notification_ledger
            WHERE document_id = :document_id
              AND interval_days = :interval_days
              AND run_date = :run_date
            """
        )
        params = {
            "document_id": document_id,
            "interval_days": int(interval_days),
            "run_date": run_date.isoformat(),
        }
        with _transaction(self._engine, "release_notification") as conn:
            conn.execute(query, params)

    def was_sent(self, document_id: str, interval_days: int, run_date: date) -> bool:
        query = text(
            """
            SELECT 1 FROM notification_ledger
            WHERE document_id = :document_id
              AND interval_days = :interval_days
              AND run_date = :run_date
            """
        )
        params = {
            "document_id": document_id,
            "interval_days": int(interval_days),
            "run_date": run_date.isoformat(),
        }
        with _transaction(self._engine, "read_notification_ledger") as conn:
            row = conn.execute(query, params).fetchone()

        return row is not None
