"""Gmail delivery channel."""

from .client import GmailClient
from .message import build_raw_message

__all__ = ["GmailClient", "build_raw_message"]
