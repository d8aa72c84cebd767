"""Unit tests for the SQLAlchemy-backed store."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import text

from doc_tracker.exceptions import DataAccessError
from doc_tracker.models import Document, UserRecord
from doc_tracker.store import (
    DocumentRepository,
    NotificationLedger,
    UserDirectory,
    create_store_engine,
    ensure_schema,
)


def _doc(doc_id: str, expires: date | None, user_id: str = "u1") -> Document:
    return Document(id=doc_id, user_id=user_id, title=doc_id, type="License", expiration_date=expires)


def test_list_expiring_is_inclusive_and_skips_undated(documents: DocumentRepository) -> None:
    for doc in [
        _doc("before", date(2024, 2, 29)),
        _doc("start", date(2024, 3, 1)),
        _doc("middle", date(2024, 3, 10)),
        _doc("end", date(2024, 4, 1)),
        _doc("after", date(2024, 4, 2)),
        _doc("undated", None),
    ]:
        documents.add(doc)

    found = documents.list_expiring(date(2024, 3, 1), date(2024, 4, 1))

    assert [d.id for d in found] == ["start", "middle", "end"]
    assert found[0].expiration_date == date(2024, 3, 1)


def test_list_for_user_filters_owner(documents: DocumentRepository) -> None:
    documents.add(_doc("mine", date(2024, 3, 5), user_id="u1"))
    documents.add(_doc("theirs", date(2024, 3, 5), user_id="u2"))

    found = documents.list_for_user("u1", date(2024, 3, 1), date(2024, 4, 30))

    assert [d.id for d in found] == ["mine"]


def test_add_replaces_existing(documents: DocumentRepository) -> None:
    documents.add(_doc("d1", date(2024, 3, 5)))
    documents.add(_doc("d1", date(2024, 3, 20)))

    found = documents.list_expiring(date(2024, 3, 1), date(2024, 3, 31))

    assert len(found) == 1
    assert found[0].expiration_date == date(2024, 3, 20)


def test_user_round_trip(users: UserDirectory) -> None:
    users.upsert_user(
        UserRecord(id="u1", email="u1@example.com", metadata={"notification_intervals": [10]})
    )

    user = users.get_user("u1")

    assert user is not None
    assert user.email == "u1@example.com"
    assert user.metadata == {"notification_intervals": [10]}
    assert users.get_user("missing") is None


def test_ledger_claim_is_at_most_once(ledger: NotificationLedger) -> None:
    day = date(2024, 3, 1)

    assert ledger.claim("d1", 15, day, "u1") is True
    assert ledger.claim("d1", 15, day, "u1") is False
    assert ledger.claim("d1", 7, day, "u1") is True
    assert ledger.claim("d1", 15, date(2024, 3, 2), "u1") is True
    assert ledger.was_sent("d1", 15, day) is True


def test_ledger_release_allows_reclaim(ledger: NotificationLedger) -> None:
    day = date(2024, 3, 1)
    ledger.claim("d1", 15, day, "u1")

    ledger.release("d1", 15, day)

    assert ledger.was_sent("d1", 15, day) is False
    assert ledger.claim("d1", 15, day, "u1") is True


def test_ensure_schema_is_idempotent(engine) -> None:
    ensure_schema(engine)
    ensure_schema(engine)


def test_missing_tables_raise_data_access_error(tmp_path) -> None:
    engine = create_store_engine(f"sqlite:///{tmp_path / 'empty.sqlite3'}")

    with pytest.raises(DataAccessError):
        DocumentRepository(engine).list_expiring(date(2024, 3, 1), date(2024, 4, 1))

    with pytest.raises(DataAccessError):
        UserDirectory(engine).get_user("u1")


def test_malformed_expiration_row_is_skipped(engine, documents: DocumentRepository) -> None:
    documents.add(_doc("good", date(2024, 3, 10)))
    with engine.begin() as conn:
        conn.execute(
            text(
                "INSERT INTO documents (id, user_id, title, type, expiration_date) "
                "VALUES ('bad', 'u1', 'bad', 'License', '2024-03-05junk')"
            )
        )

    found = documents.list_expiring(date(2024, 3, 1), date(2024, 4, 1))

    assert [d.id for d in found] == ["good"]
    assert [d.id for d in documents.list_for_user("u1", date(2024, 3, 1), date(2024, 4, 1))] == ["good"]
