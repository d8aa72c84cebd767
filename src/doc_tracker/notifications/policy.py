"""Per-user reminder policy resolution.

User profiles carry loosely shaped settings. Everything the reminder
engine needs from them is validated here, once, and handed on as a
NotificationPolicy.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from doc_tracker.config import DEFAULT_NOTIFICATION_INTERVALS
from doc_tracker.models import NotificationPolicy, UserRecord
from doc_tracker.store import UserDirectory

logger = structlog.get_logger()


def _as_positive_int(value: Any, max_days: int | None = None) -> int | None:
    # bool is an int subclass; a True in the list is a malformed setting.
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        return None
    if max_days is not None and value > max_days:
        return None
    return value


def resolve_intervals(
    raw: Any,
    default: Sequence[int] = DEFAULT_NOTIFICATION_INTERVALS,
    max_days: int | None = None,
) -> list[int]:
    """Validate a user's custom interval list.

    A single bad entry (non-numeric, fractional, zero, negative or above
    ``max_days``) discards the whole custom list. Missing or empty lists
    also fall back to ``default``. The result is deduplicated and sorted descending.
    """

    fallback = sorted(set(default), reverse=True)

    if not isinstance(raw, (list, tuple)) or not raw:
        return fallback

    parsed = [_as_positive_int(v, max_days) for v in raw]
    if any(v is None for v in parsed):
        logger.debug("custom_intervals_rejected", raw=list(raw))
        return fallback

    return sorted(set(parsed), reverse=True)  # type: ignore[arg-type]


def resolve_display_name(email: str, metadata: dict[str, Any]) -> str:
    """Pick the name used to greet a user."""

    for key in ("name", "full_name"):
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    local_part = email.split("@", 1)[0].strip()
    return local_part or "User"


def build_policy(
    user: UserRecord,
    default_intervals: Sequence[int] = DEFAULT_NOTIFICATION_INTERVALS,
    max_interval_days: int | None = None,
) -> NotificationPolicy | None:
    """Turn a profile into a policy, or None when it has no usable address."""

    if not user.email:
        return None

    metadata = user.metadata or {}
    return NotificationPolicy(
        user_id=user.id,
        email=user.email,
        display_name=resolve_display_name(user.email, metadata),
        # Only an explicit opt-out disables reminders.
        notifications_enabled=metadata.get("email_notifications") is not False,
        intervals=resolve_intervals(
            metadata.get("notification_intervals"), default_intervals, max_interval_days
        ),
    )


class PolicyResolver:
    """Resolves and memoizes user policies for the lifetime of one run."""

    def __init__(
        self,
        users: UserDirectory,
        default_intervals: Sequence[int] = DEFAULT_NOTIFICATION_INTERVALS,
        max_interval_days: int | None = None,
    ) -> None:
        self._users = users
        self._default_intervals = list(default_intervals)
        self._max_interval_days = max_interval_days
        self._cache: dict[str, NotificationPolicy | None] = {}

    def resolve(self, user_id: str) -> NotificationPolicy | None:
        """Resolve one user's policy.

        Returns:
            The policy, or None when the user is unknown or has no email.

        Raises:
            DataAccessError: If the user store cannot be read.
        """

        if user_id in self._cache:
            return self._cache[user_id]

        user = self._users.get_user(user_id)
        policy = None
        if user is not None:
            policy = build_policy(user, self._default_intervals, self._max_interval_days)
        if policy is None:
            logger.warning("user_unresolvable", user_id=user_id)

        self._cache[user_id] = policy
        return policy
