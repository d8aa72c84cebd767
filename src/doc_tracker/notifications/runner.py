"""Notification run orchestration.

One run walks a fixed sequence of states:

    idle -> authorizing -> loading -> resolving -> evaluating -> dispatching
         -> completed | failed

Only an authorization failure or a store failure while loading candidates
or resolving users ends a run early. Everything that goes wrong for a
single document is counted in the summary and the run carries on.

The store is synchronous; its calls run in worker threads via
``asyncio.to_thread`` so dispatch stays concurrent.
"""

from __future__ import annotations

import asyncio
import hmac
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

import structlog

from doc_tracker.config import Settings
from doc_tracker.exceptions import DataAccessError, DeliveryError, UnauthorizedError
from doc_tracker.models import (
    Document,
    NotificationEvent,
    NotificationPolicy,
    RunResult,
    RunState,
    RunStatus,
    RunSummary,
)
from doc_tracker.store import DocumentRepository, NotificationLedger, UserDirectory

from .eligibility import classify_urgency, is_eligible, local_today
from .policy import PolicyResolver
from .rendering import render_reminder_html, subject_line

logger = structlog.get_logger()


class MailTransport(Protocol):
    """Delivery channel used by the runner."""

    async def send_message(self, to: str, subject: str, html: str) -> str: ...

    async def verify(self) -> str: ...


@dataclass
class _Outcome:
    sent: bool = False
    skipped: bool = False
    error: str | None = None


def _resolve_owners(
    resolver: PolicyResolver,
    candidates: list[Document],
) -> dict[str, NotificationPolicy | None]:
    # dict.fromkeys keeps first-seen order while deduplicating.
    return {uid: resolver.resolve(uid) for uid in dict.fromkeys(d.user_id for d in candidates)}


def check_trigger_secret(settings: Settings, credential: str | None) -> None:
    """Validate the scheduler's shared secret.

    Development mode accepts any caller. In production a secret must be
    configured and presented.

    Raises:
        UnauthorizedError: If the check fails.
    """

    if not settings.is_hardened:
        return

    if not settings.cron_secret:
        logger.error("cron_secret_not_configured")
        raise UnauthorizedError("No trigger secret configured")

    if credential is None or not hmac.compare_digest(
        credential.encode("utf-8"), settings.cron_secret.encode("utf-8")
    ):
        raise UnauthorizedError("Missing or invalid trigger secret")


class NotificationRunner:
    """Runs one expiry-reminder cycle.

    Collaborators are passed in explicitly and are expected to live at
    least as long as the runner. A runner is good for a single run; create
    a new one per invocation.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        documents: DocumentRepository,
        users: UserDirectory,
        transport: MailTransport,
        ledger: NotificationLedger | None = None,
    ) -> None:
        self.settings = settings
        self.documents = documents
        self.users = users
        self.transport = transport
        self.ledger = ledger if settings.ledger_enabled else None
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def _enter(self, state: RunState) -> None:
        logger.debug("notification_run_state", previous=self._state.value, state=state.value)
        self._state = state

    async def run(self, credential: str | None = None, today: date | None = None) -> RunResult:
        """Execute the full cycle.

        Args:
            credential: Secret presented by the caller, if any.
            today: Reference day. Defaults to today in the configured zone.

        Returns:
            RunResult describing the terminal state.
        """

        if self._state is not RunState.IDLE:
            raise RuntimeError(f"Runner already used (state={self._state.value})")

        self._enter(RunState.AUTHORIZING)
        try:
            check_trigger_secret(self.settings, credential)
        except UnauthorizedError as exc:
            logger.warning("notification_run_unauthorized", reason=str(exc))
            self._enter(RunState.FAILED)
            return RunResult(status=RunStatus.UNAUTHORIZED, error="Unauthorized")

        run_date = today or local_today(self.settings.timezone)
        horizon = self.settings.candidate_horizon_days
        logger.info("notification_run_started", run_date=run_date.isoformat(), horizon=horizon)

        self._enter(RunState.LOADING)
        try:
            candidates = await asyncio.to_thread(
                self.documents.list_expiring, run_date, run_date + timedelta(days=horizon)
            )
        except DataAccessError as exc:
            return self._fail("Failed to fetch documents", exc)

        if not candidates:
            self._enter(RunState.COMPLETED)
            logger.info("notification_run_completed", sent=0, skipped=0, total=0)
            return RunResult(
                status=RunStatus.COMPLETED,
                summary=RunSummary(message=f"No documents expiring in the next {horizon} days"),
            )

        self._enter(RunState.RESOLVING)
        resolver = PolicyResolver(
            self.users,
            self.settings.default_intervals,
            self.settings.max_interval_days,
        )
        try:
            policies = await asyncio.to_thread(_resolve_owners, resolver, candidates)
        except DataAccessError as exc:
            return self._fail("Failed to resolve users", exc)

        self._enter(RunState.EVALUATING)
        summary = RunSummary(total=len(candidates))
        pending: list[NotificationEvent] = []
        for doc in candidates:
            policy = policies.get(doc.user_id)
            try:
                event = self._evaluate(doc, policy, run_date)
            except Exception as exc:  # noqa: BLE001
                logger.exception("notification_evaluation_failed", document_id=doc.id)
                summary.errors.append(f"Failed to prepare reminder for document {doc.id}: {exc}")
                continue

            if event is None:
                summary.skipped += 1
            else:
                pending.append(event)

        self._enter(RunState.DISPATCHING)
        semaphore = asyncio.Semaphore(self.settings.dispatch_concurrency)
        outcomes = await asyncio.gather(*(self._dispatch(e, run_date, semaphore) for e in pending))
        for outcome in outcomes:
            if outcome.sent:
                summary.sent += 1
            elif outcome.skipped:
                summary.skipped += 1
            elif outcome.error:
                summary.errors.append(outcome.error)

        self._enter(RunState.COMPLETED)
        logger.info(
            "notification_run_completed",
            sent=summary.sent,
            skipped=summary.skipped,
            total=summary.total,
            errors=len(summary.errors),
        )
        return RunResult(status=RunStatus.COMPLETED, summary=summary)

    def _fail(self, message: str, exc: Exception) -> RunResult:
        logger.error("notification_run_failed", stage=self._state.value, error=str(exc))
        self._enter(RunState.FAILED)
        return RunResult(status=RunStatus.FAILED, error=message, details=str(exc))

    def _evaluate(
        self,
        doc: Document,
        policy: NotificationPolicy | None,
        run_date: date,
    ) -> NotificationEvent | None:
        if policy is None:
            logger.info("notification_skipped", document_id=doc.id, reason="user_unresolvable")
            return None
        if not policy.notifications_enabled:
            logger.info("notification_skipped", document_id=doc.id, reason="notifications_disabled")
            return None
        if doc.expiration_date is None:
            return None

        result = is_eligible(doc.expiration_date, run_date, policy.intervals)
        if not result.eligible or result.matched_interval is None:
            logger.debug(
                "notification_not_due",
                document_id=doc.id,
                days_until=result.days_until,
                intervals=policy.intervals,
            )
            return None

        return NotificationEvent(
            document_id=doc.id,
            user_id=policy.user_id,
            email=policy.email,
            days_until=result.days_until,
            interval=result.matched_interval,
            urgency=classify_urgency(result.days_until),
            subject=subject_line(doc.title, result.days_until),
            html=render_reminder_html(
                user_name=policy.display_name,
                document_title=doc.title,
                document_type=doc.type,
                expiration_date=doc.expiration_date,
                days_until=result.days_until,
                intervals=policy.intervals,
                app_url=self.settings.app_url,
            ),
        )

    async def _dispatch(
        self,
        event: NotificationEvent,
        run_date: date,
        semaphore: asyncio.Semaphore,
    ) -> _Outcome:
        async with semaphore:
            if self.ledger is not None:
                try:
                    claimed = await asyncio.to_thread(
                        self.ledger.claim, event.document_id, event.interval, run_date, event.user_id
                    )
                except DataAccessError as exc:
                    return _Outcome(error=f"Failed to record reminder for document {event.document_id}: {exc}")
                if not claimed:
                    logger.info(
                        "notification_skipped",
                        document_id=event.document_id,
                        interval=event.interval,
                        reason="already_sent_today",
                    )
                    return _Outcome(skipped=True)

            try:
                await self.transport.send_message(event.email, event.subject, event.html)
            except Exception as exc:  # noqa: BLE001
                message = str(exc) if isinstance(exc, DeliveryError) else f"Failed to send to {event.email}: {exc}"
                logger.error("notification_failed", document_id=event.document_id, error=message)
                await self._release(event, run_date)
                return _Outcome(error=message)

        logger.info(
            "notification_sent",
            document_id=event.document_id,
            user_id=event.user_id,
            days_until=event.days_until,
            urgency=event.urgency.value,
        )
        return _Outcome(sent=True)

    async def _release(self, event: NotificationEvent, run_date: date) -> None:
        if self.ledger is None:
            return
        try:
            await asyncio.to_thread(self.ledger.release, event.document_id, event.interval, run_date)
        except DataAccessError as exc:
            logger.error("notification_release_failed", document_id=event.document_id, error=str(exc))
