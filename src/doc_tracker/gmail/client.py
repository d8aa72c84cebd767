"""Gmail API client used as the reminder delivery channel.

Notes:
    The Google API client is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the rest of the codebase can remain async-friendly.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog

from doc_tracker.config import Settings
from doc_tracker.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DeliveryError,
    ValidationError,
)

from .message import build_raw_message

logger = structlog.get_logger()


class GmailClient:
    """Gmail API client for sending reminder mail.

    One instance is created explicitly by whoever runs the engine and lives
    as long as that caller; nothing here is a module-level singleton.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize Gmail client.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from doc_tracker.config import get_settings

        self.settings = settings or get_settings()
        self._service: Any | None = None
        self._auth_lock = asyncio.Lock()
        logger.info("gmail_client_initialized")

    async def authenticate(self) -> None:
        """Authenticate with Gmail API using OAuth2.

        Raises:
            ConfigurationError: If the credentials file is missing.
            AuthenticationError: If authentication fails.
        """

        if self._service is not None:
            return

        # Concurrent senders share one OAuth flow and one token write.
        async with self._auth_lock:
            if self._service is not None:
                return

            credentials_path = Path(self.settings.gmail_credentials_path)
            token_path = Path(self.settings.gmail_token_path)
            scope = self.settings.gmail_scope

            if not credentials_path.exists() and not token_path.exists():
                raise ConfigurationError(
                    f"Gmail credentials file not found: {credentials_path}. "
                    "Set DOCTRACKER_GMAIL_CREDENTIALS_PATH or provide a token file."
                )

            logger.info(
                "gmail_authentication_started",
                credentials_path=str(credentials_path),
                token_path=str(token_path),
                scope=scope,
            )

            try:
                self._service = await asyncio.to_thread(
                    self._build_service,
                    credentials_path,
                    token_path,
                    scope,
                )
            except Exception as exc:  # noqa: BLE001
                logger.exception("gmail_authentication_failed", error=str(exc))
                raise AuthenticationError(str(exc)) from exc

            logger.info("gmail_authentication_completed")

    async def verify(self) -> str:
        """Check that the channel is usable.

        Returns:
            The address of the authenticated Gmail account.

        Raises:
            ConfigurationError: If credentials are missing.
            AuthenticationError: If Gmail rejects the credentials.
        """

        await self.authenticate()

        try:
            profile = await asyncio.to_thread(self._get_profile_sync)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_verify_failed", error=str(exc))
            raise AuthenticationError(str(exc)) from exc

        address = str(profile.get("emailAddress") or "")
        logger.info("gmail_verified", email=address)
        return address

    async def send_message(self, to: str, subject: str, html: str) -> str:
        """Send one HTML message.

        Args:
            to: Recipient address.
            subject: Subject line.
            html: HTML body.

        Returns:
            The Gmail message ID of the sent mail.

        Raises:
            DeliveryError: If Gmail does not accept the message.
        """

        try:
            await self.authenticate()
            body = build_raw_message(
                to=to,
                subject=subject,
                html=html,
                sender_name=self.settings.sender_name,
                sender_address=self.settings.sender_address,
            )
        except (ConfigurationError, AuthenticationError, ValidationError) as exc:
            raise DeliveryError(f"Failed to send to {to}: {exc}") from exc

        try:
            response = await asyncio.to_thread(self._send_sync, body)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_send_failed", to=to, error=str(exc))
            raise DeliveryError(f"Failed to send to {to}: {exc}") from exc

        message_id = str(response.get("id") or "")
        logger.info("gmail_message_sent", to=to, message_id=message_id)
        return message_id

    def _build_service(self, credentials_path: Path, token_path: Path, scope: str) -> Any:
        # Imported lazily to keep import-time cost low and tests fast.
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials
        from google_auth_oauthlib.flow import InstalledAppFlow
        from googleapiclient.discovery import build

        creds: Credentials | None = None
        if token_path.exists():
            creds = Credentials.from_authorized_user_file(str(token_path), scopes=[scope])

        if creds is not None and creds.expired and creds.refresh_token:
            creds.refresh(Request())

        if creds is None or not creds.valid:
            flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), scopes=[scope])
            creds = flow.run_local_server(port=0)
            token_path.parent.mkdir(parents=True, exist_ok=True)
            token_path.write_text(creds.to_json(), encoding="utf-8")

        # cache_discovery=False prevents writing discovery docs to disk.
        return build("gmail", "v1", credentials=creds, cache_discovery=False)

    def _get_profile_sync(self) -> dict[str, Any]:
        assert self._service is not None
        return self._service.users().getProfile(userId="me").execute()

    def _send_sync(self, body: dict[str, str]) -> dict[str, Any]:
        assert self._service is not None
        return self._service.users().messages().send(userId="me", body=body).execute()
