"""
Tests for the Contribution Ledger models

Test strategy:
1. Unit tests for individual components (models, validator, storage)
2. Store tests against in-memory and temporary-file storage
3. No network, no real user data
"""

import pytest
from decimal import Decimal

from contribution_ledger.models.contribution import (
    Contribution,
    ContributionDraft,
    ValidationIssue,
    ValidationResult,
)
from contribution_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestContributionModel:
    """Tests for the Contribution Pydantic model."""

    def test_contribution_creation(self):
        """Test Contribution model creation."""
        contribution = Contribution(
            name="Alice",
            amount=Decimal("50.00"),
            date="2024-03-01",
        )
        assert contribution.name == "Alice"
        assert contribution.amount == Decimal("50.00")
        assert contribution.date == "2024-03-01"
        assert contribution.id

    def test_ids_are_unique(self):
        """Test that generated ids differ."""
        ids = {
            Contribution(name="A", amount=Decimal("1"), date="2024-01-01").id
            for _ in range(50)
        }
        assert len(ids) == 50

    def test_contribution_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        contribution = Contribution(name="  Bob  ", amount=Decimal("1"), date="2024-01-01")
        assert contribution.name == "Bob"

    def test_contribution_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Contribution(name="Test", amount=Decimal("-1"), date="2024-01-01")

    def test_contribution_rejects_empty_name(self):
        with pytest.raises(ValueError):
            Contribution(name="   ", amount=Decimal("1"), date="2024-01-01")

    def test_contribution_rejects_impossible_date(self):
        """Test that the date must exist on the calendar."""
        with pytest.raises(ValueError):
            Contribution(name="Test", amount=Decimal("1"), date="2024-02-30")

    def test_contribution_rejects_non_iso_date(self):
        with pytest.raises(ValueError):
            Contribution(name="Test", amount=Decimal("1"), date="01/03/2024")

    def test_contribution_is_frozen(self):
        """Test that records can't be changed behind the store's back."""
        contribution = Contribution(name="Alice", amount=Decimal("1"), date="2024-01-01")
        with pytest.raises(ValueError):
            contribution.name = "Mallory"

    def test_legacy_payment_field(self):
        """Test that older snapshots using `payment` still load."""
        contribution = Contribution.model_validate({
            "id": "1709251200000",
            "name": "Alice",
            "payment": "50",
            "date": "2024-03-01",
        })
        assert contribution.id == "1709251200000"
        assert contribution.amount == Decimal("50")

    def test_snapshot_dict_keeps_precision(self):
        """Test that amounts are written as strings."""
        contribution = Contribution(
            id="abc",
            name="Alice",
            amount=Decimal("10.125"),
            date="2024-03-01",
        )
        assert contribution.to_snapshot_dict() == {
            "id": "abc",
            "name": "Alice",
            "amount": "10.125",
            "date": "2024-03-01",
        }

    def test_as_date(self):
        contribution = Contribution(name="A", amount=Decimal("1"), date="2024-03-01")
        assert contribution.as_date.isoformat() == "2024-03-01"

    def test_draft_to_contribution_keeps_id(self):
        draft = ContributionDraft(name="Alice", amount=Decimal("5"), date="2024-01-01")
        assert draft.to_contribution("fixed-id").id == "fixed-id"
        assert draft.to_contribution().id != "fixed-id"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_ADDED,
            description="Test contribution added",
        )
        assert event.event_type == AuditEventType.CONTRIBUTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.contribution_added(
            contribution_id="abc",
            name="Alice",
            amount="50.00",
            date="2024-03-01",
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "contribution_added"
        assert log_dict["contribution_id"] == "abc"
        assert log_dict["details"]["name"] == "Alice"

    def test_snapshot_load_failed_is_an_error(self):
        event = AuditEventBuilder.snapshot_load_failed("memory", "bad json")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "bad json"

    def test_validation_failed_description(self):
        event = AuditEventBuilder.validation_failed(
            operation="add",
            issues=[{"field": "name"}, {"field": "amount"}],
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.description == "Add rejected with 2 issues"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.is_valid is False

    def test_validation_result_with_draft(self):
        result = ValidationResult(
            draft=ContributionDraft(name="A", amount=Decimal("1"), date="2024-01-01"),
        )
        assert result.is_valid is True
        assert result.error_count == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
