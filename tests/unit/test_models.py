"""Unit tests for data models."""

from datetime import date

import pytest
from pydantic import ValidationError

from doc_tracker.models import (
    Document,
    RunResult,
    RunStatus,
    RunSummary,
    UserRecord,
)


class TestDocument:
    """Test suite for Document model."""

    def test_document_defaults(self) -> None:
        """Test that optional fields fall back to sensible defaults."""
        doc = Document(id="d1", user_id="u1")

        assert doc.title == ""
        assert doc.type == "Other"
        assert doc.expiration_date is None

    def test_document_parses_iso_date(self) -> None:
        """Test that expiration dates stored as ISO text are parsed."""
        doc = Document(id="d1", user_id="u1", expiration_date="2024-03-16")

        assert doc.expiration_date == date(2024, 3, 16)

    def test_document_requires_owner(self) -> None:
        """Test that a document without an owner is rejected."""
        with pytest.raises(ValidationError):
            Document(id="d1")


class TestUserRecord:
    """Test suite for UserRecord model."""

    def test_user_record_metadata_defaults_to_empty(self) -> None:
        user = UserRecord(id="u1", email="u1@example.com")

        assert user.metadata == {}


class TestRunSummary:
    """Test suite for RunSummary and RunResult models."""

    def test_summary_serializes_errors_list(self) -> None:
        """Test that the errors list is always present in the payload."""
        payload = RunSummary(sent=2, skipped=1, total=3).model_dump(mode="json")

        assert payload == {
            "message": "Notification job completed",
            "sent": 2,
            "skipped": 1,
            "total": 3,
            "errors": [],
        }

    def test_failed_result_has_no_summary(self) -> None:
        result = RunResult(status=RunStatus.FAILED, error="Failed to fetch documents")

        assert result.summary is None
        assert result.status.value == "failed"
