"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import date

import pytest

from doc_tracker.config import Settings
from doc_tracker.exceptions import DeliveryError
from doc_tracker.models import Document, UserRecord
from doc_tracker.notifications import NotificationService
from doc_tracker.store import (
    DocumentRepository,
    NotificationLedger,
    UserDirectory,
    create_store_engine,
    ensure_schema,
)


class FakeTransport:
    """In-memory delivery channel recording every message."""

    def __init__(self, failing: set[str] | None = None, verify_error: Exception | None = None) -> None:
        self.failing = failing or set()
        self.verify_error = verify_error
        self.sent: list[dict[str, str]] = []

    async def send_message(self, to: str, subject: str, html: str) -> str:
        if to in self.failing:
            raise DeliveryError(f"Failed to send to {to}: mailbox unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return f"msg-{len(self.sent)}"

    async def verify(self) -> str:
        if self.verify_error is not None:
            raise self.verify_error
        return "reminders@example.com"


@pytest.fixture
def run_date() -> date:
    """Reference day used across scenario tests."""
    return date(2024, 3, 1)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Provide isolated settings backed by a temporary SQLite file."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'doctracker.sqlite3'}",
        environment="development",
        cron_secret=None,
        log_level="DEBUG",
        debug=True,
        gmail_credentials_path=tmp_path / "missing-credentials.json",
        gmail_token_path=tmp_path / "missing-token.json",
    )


@pytest.fixture
def engine(settings: Settings):
    engine = create_store_engine(settings.database_url)
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def documents(engine) -> DocumentRepository:
    return DocumentRepository(engine)


@pytest.fixture
def users(engine) -> UserDirectory:
    return UserDirectory(engine)


@pytest.fixture
def ledger(engine) -> NotificationLedger:
    return NotificationLedger(engine)


@pytest.fixture
def make_transport():
    """Factory for fake transports with failing recipients or a broken verify."""
    return FakeTransport


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def service(settings: Settings, engine, transport: FakeTransport) -> NotificationService:
    return NotificationService(settings, engine, transport)


@pytest.fixture
def alice(users: UserDirectory) -> UserRecord:
    """A user with default reminder settings."""
    user = UserRecord(id="u-alice", email="alice@example.com", metadata={"name": "Alice"})
    users.upsert_user(user)
    return user


@pytest.fixture
def passport(documents: DocumentRepository, alice: UserRecord) -> Document:
    """Alice's passport, 15 days from the reference day."""
    doc = Document(
        id="doc-passport",
        user_id=alice.id,
        title="Passport",
        type="Passport",
        expiration_date=date(2024, 3, 16),
    )
    documents.add(doc)
    return doc
