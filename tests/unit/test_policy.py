"""Unit tests for user policy resolution."""

from unittest.mock import MagicMock

import pytest

from doc_tracker.exceptions import DataAccessError
from doc_tracker.models import UserRecord
from doc_tracker.notifications.policy import (
    PolicyResolver,
    build_policy,
    resolve_display_name,
    resolve_intervals,
)

DEFAULT = [30, 15, 7, 1]


class TestResolveIntervals:
    """Test suite for resolve_intervals."""

    def test_missing_uses_default(self) -> None:
        assert resolve_intervals(None) == DEFAULT

    def test_valid_custom_list_kept(self) -> None:
        assert resolve_intervals([45, 10]) == [45, 10]

    def test_sorted_descending(self) -> None:
        assert resolve_intervals([3, 60, 14]) == [60, 14, 3]

    def test_duplicates_removed(self) -> None:
        assert resolve_intervals([7, 7, 1, 30]) == [30, 7, 1]

    def test_integral_floats_accepted(self) -> None:
        assert resolve_intervals([14.0, 2]) == [14, 2]

    def test_interval_above_cap_discards_list(self) -> None:
        assert resolve_intervals([45, 10], max_days=60) == [45, 10]
        assert resolve_intervals([90, 10], max_days=60) == DEFAULT

    @pytest.mark.parametrize(
        "raw",
        [
            [30, -1],
            [0, 7],
            [7, "3"],
            [7, None],
            [7, True],
            [2.5, 7],
            [],
            "30,15",
            {"a": 1},
        ],
    )
    def test_invalid_falls_back_to_default(self, raw) -> None:
        assert resolve_intervals(raw) == DEFAULT

    def test_resolution_is_idempotent(self) -> None:
        raw = [5, 40, 12]

        assert resolve_intervals(raw) == resolve_intervals(raw)
        assert raw == [5, 40, 12]

    def test_custom_default(self) -> None:
        assert resolve_intervals(None, default=[1, 3]) == [3, 1]


class TestDisplayName:
    """Test suite for resolve_display_name."""

    def test_prefers_name(self) -> None:
        assert resolve_display_name("a@x.io", {"name": "Ana", "full_name": "Ana Lopez"}) == "Ana"

    def test_then_full_name(self) -> None:
        assert resolve_display_name("a@x.io", {"full_name": "Ana Lopez"}) == "Ana Lopez"

    def test_then_local_part(self) -> None:
        assert resolve_display_name("ana.lopez@x.io", {"name": "  "}) == "ana.lopez"

    def test_then_literal_user(self) -> None:
        assert resolve_display_name("@x.io", {}) == "User"


class TestBuildPolicy:
    """Test suite for build_policy."""

    def test_defaults(self) -> None:
        policy = build_policy(UserRecord(id="u1", email="u1@example.com"))

        assert policy is not None
        assert policy.notifications_enabled is True
        assert policy.intervals == DEFAULT
        assert policy.display_name == "u1"

    def test_only_explicit_false_disables(self) -> None:
        off = build_policy(UserRecord(id="u1", email="u@x.io", metadata={"email_notifications": False}))
        odd = build_policy(UserRecord(id="u1", email="u@x.io", metadata={"email_notifications": "no"}))

        assert off is not None and off.notifications_enabled is False
        assert odd is not None and odd.notifications_enabled is True

    def test_no_email_is_unresolvable(self) -> None:
        assert build_policy(UserRecord(id="u1", email=None)) is None


class TestPolicyResolver:
    """Test suite for PolicyResolver."""

    def test_unknown_user_is_none(self, users) -> None:
        assert PolicyResolver(users).resolve("ghost") is None

    def test_resolves_stored_profile(self, users) -> None:
        users.upsert_user(
            UserRecord(
                id="u1",
                email="u1@example.com",
                metadata={"full_name": "Uma One", "notification_intervals": [45, 10]},
            )
        )

        policy = PolicyResolver(users).resolve("u1")

        assert policy is not None
        assert policy.display_name == "Uma One"
        assert policy.intervals == [45, 10]

    def test_memoizes_per_user(self) -> None:
        directory = MagicMock()
        directory.get_user.return_value = UserRecord(id="u1", email="u1@example.com")
        resolver = PolicyResolver(directory)

        first = resolver.resolve("u1")
        second = resolver.resolve("u1")

        assert first == second
        directory.get_user.assert_called_once_with("u1")

    def test_store_failure_propagates(self) -> None:
        directory = MagicMock()
        directory.get_user.side_effect = DataAccessError("down")

        with pytest.raises(DataAccessError):
            PolicyResolver(directory).resolve("u1")
