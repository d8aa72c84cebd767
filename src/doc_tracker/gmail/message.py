"""Helpers for building Gmail API send payloads."""

from __future__ import annotations

import base64
from email.message import EmailMessage
from email.utils import formataddr

from doc_tracker.exceptions import ValidationError


def build_raw_message(
    *,
    to: str,
    subject: str,
    html: str,
    sender_name: str,
    sender_address: str | None = None,
) -> dict[str, str]:
    """Build the ``{"raw": ...}`` body expected by ``users.messages.send``.

    Args:
        to: Recipient address.
        subject: Subject header.
        html: HTML body.
        sender_name: Display name for the From header.
        sender_address: From address. Gmail substitutes the authenticated
            account when omitted.

    Returns:
        Request body with the base64url encoded RFC 822 message.

    Raises:
        ValidationError: If the recipient is empty or malformed.
    """

    recipient = (to or "").strip()
    if not recipient or "@" not in recipient:
        raise ValidationError(f"Invalid recipient address: {to!r}")

    message = EmailMessage()
    message["To"] = recipient
    message["Subject"] = subject
    if sender_address:
        message["From"] = formataddr((sender_name, sender_address))
    message.set_content("This message requires an HTML capable mail client.")
    message.add_alternative(html, subtype="html")

    raw = base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")
    return {"raw": raw}
