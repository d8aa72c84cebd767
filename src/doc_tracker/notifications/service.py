"""Entry points shared by the HTTP API and the CLI."""

from __future__ import annotations

from datetime import date

import structlog
from sqlalchemy.engine import Engine

from doc_tracker.config import Settings
from doc_tracker.exceptions import ValidationError
from doc_tracker.models import RunResult, UserPreview
from doc_tracker.store import (
    DocumentRepository,
    NotificationLedger,
    UserDirectory,
    create_store_engine,
    ensure_schema,
)

from .eligibility import local_today
from .preview import preview_user
from .rendering import TEST_EMAIL_SUBJECT, describe_schedule, render_test_html
from .runner import MailTransport, NotificationRunner

logger = structlog.get_logger()


class NotificationService:
    """Wires the store and the delivery channel together.

    Create one per process (or per test) and pass it to whatever serves
    requests. Each call to :meth:`run` gets a fresh runner.
    """

    def __init__(self, settings: Settings, engine: Engine, transport: MailTransport) -> None:
        self.settings = settings
        self.engine = engine
        self.transport = transport
        self.documents = DocumentRepository(engine)
        self.users = UserDirectory(engine)
        self.ledger = NotificationLedger(engine)

    @classmethod
    def from_settings(cls, settings: Settings, transport: MailTransport | None = None) -> "NotificationService":
        """Build a service from configuration alone.

        Raises:
            DataAccessError: If the store cannot be initialized.
        """

        engine = create_store_engine(settings.database_url)
        ensure_schema(engine)
        if transport is None:
            from doc_tracker.gmail import GmailClient

            transport = GmailClient(settings)
        return cls(settings, engine, transport)

    async def run(self, credential: str | None = None, today: date | None = None) -> RunResult:
        runner = NotificationRunner(
            settings=self.settings,
            documents=self.documents,
            users=self.users,
            transport=self.transport,
            ledger=self.ledger,
        )
        return await runner.run(credential=credential, today=today)

    def preview(self, user_id: str, today: date | None = None) -> UserPreview:
        return preview_user(
            user_id,
            documents=self.documents,
            users=self.users,
            today=today or local_today(self.settings.timezone),
            lookahead_days=self.settings.preview_lookahead_days,
            default_intervals=self.settings.default_intervals,
            max_interval_days=self.settings.max_interval_days,
        )

    async def verify_channel(self) -> dict[str, object]:
        """Confirm the delivery channel is configured. Evaluates no documents."""

        account = await self.transport.verify()
        return {
            "status": "ok",
            "message": "Email configuration is valid",
            "account": account,
            "intervals": list(self.settings.default_intervals),
        }

    async def send_test(self, email: str) -> dict[str, object]:
        """Send the 'notifications activated' mail, bypassing eligibility.

        Raises:
            ValidationError: If no address is given.
            DeliveryError: If the mail cannot be sent.
        """

        recipient = (email or "").strip()
        if not recipient:
            raise ValidationError("Email is required")

        html = render_test_html(
            recipient=recipient,
            intervals=self.settings.default_intervals,
            app_url=self.settings.app_url,
        )
        await self.transport.send_message(recipient, TEST_EMAIL_SUBJECT, html)
        logger.info("test_notification_sent", to=recipient)

        return {
            "message": "Test email sent successfully",
            "sentTo": recipient,
            "notificationSchedule": describe_schedule(self.settings.default_intervals),
        }
