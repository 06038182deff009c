"""
Core Data Models for the Contribution Ledger

These models define the strict schemas for all data flowing through the store.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for the persisted snapshot

DESIGN DECISION: A Contribution is frozen. Updating a record means building a
replacement with the same id, so a record handed to the presentation layer can
never drift from what the store holds.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def new_contribution_id() -> str:
    """Generate an opaque, collision-free record id."""
    return uuid4().hex


# =============================================================================
# CORE CONTRIBUTION MODEL
# =============================================================================

class Contribution(BaseModel):
    """
    A single named monetary contribution.

    The date is kept as an ISO `YYYY-MM-DD` string so that lexicographic
    comparison is chronological comparison.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_contribution_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Contributor name"
    )
    # Older snapshots name this field "payment"
    amount: Decimal = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("amount", "payment"),
        description="Contributed amount, full precision"
    )
    date: str = Field(
        ...,
        pattern=ISO_DATE_PATTERN,
        description="Contribution date (YYYY-MM-DD)"
    )

    @field_validator("amount")
    @classmethod
    def reject_non_finite(cls, v: Decimal) -> Decimal:
        """NaN and Infinity are not amounts."""
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @field_validator("date")
    @classmethod
    def validate_calendar_date(cls, v: str) -> str:
        """The pattern only checks shape; make sure the day exists."""
        dt.date.fromisoformat(v)
        return v

    @field_serializer("amount")
    def serialize_amount(self, v: Decimal) -> str:
        return str(v)

    @property
    def as_date(self) -> dt.date:
        """The contribution date as a `datetime.date`."""
        return dt.date.fromisoformat(self.date)

    def to_snapshot_dict(self) -> dict:
        """Field-name to value mapping used in the persisted snapshot."""
        return self.model_dump(mode="json")


class ContributionDraft(BaseModel):
    """
    Validated input for add/update, before an id is attached.

    Produced by the validator; the store turns it into a Contribution.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    amount: Decimal
    date: str

    def to_contribution(self, contribution_id: Optional[str] = None) -> Contribution:
        if contribution_id is None:
            return Contribution(name=self.name, amount=self.amount, date=self.date)
        return Contribution(
            id=contribution_id,
            name=self.name,
            amount=self.amount,
            date=self.date,
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'negative')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one add/update request."""

    draft: Optional[ContributionDraft] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.draft is not None and not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
