"""
Contribution Input Validation

Raw values arrive from the presentation layer as whatever the widgets
produce: text boxes give strings, number inputs give floats, the date
picker gives a `datetime.date`. The validator turns them into a
ContributionDraft or reports every problem it finds.

Checks:
- name present and not blank
- amount present, numeric, finite and not negative
- date a real calendar date, in ISO `YYYY-MM-DD` form when given as text;
  a missing date means today

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
whitespace. An amount like "12abc" is rejected, not read as 12.
"""

import datetime as dt
import re
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from contribution_ledger.exceptions import ValidationError
from contribution_ledger.models.contribution import (
    ISO_DATE_PATTERN,
    ContributionDraft,
    ValidationIssue,
    ValidationResult,
)


AmountInput = Union[str, int, float, Decimal, None]
DateInput = Union[str, dt.date, None]

MAX_NAME_LENGTH = 200

_ISO_DATE = re.compile(ISO_DATE_PATTERN)


class ContributionValidator:
    """Validates add/update input for the contribution store."""

    def __init__(self, today: Callable[[], dt.date] = dt.date.today):
        """
        Args:
            today: Source of the default date when none is given.
        """
        self._today = today

    def validate(
        self,
        name: Any,
        amount: AmountInput,
        date: DateInput = None,
    ) -> ValidationResult:
        """Check all three fields and collect every issue."""
        issues: list[ValidationIssue] = []

        clean_name = self._check_name(name, issues)
        clean_amount = self._check_amount(amount, issues)
        clean_date = self._check_date(date, issues)

        if issues:
            return ValidationResult(issues=issues)

        return ValidationResult(
            draft=ContributionDraft(
                name=clean_name,
                amount=clean_amount,
                date=clean_date,
            ),
        )

    def require_valid(
        self,
        name: Any,
        amount: AmountInput,
        date: DateInput = None,
    ) -> ContributionDraft:
        """
        Same as validate, but raises instead of returning issues.

        Raises:
            ValidationError: If any field is invalid
        """
        result = self.validate(name, amount, date)
        if not result.is_valid:
            raise ValidationError(result.issues)
        return result.draft

    def _check_name(self, name: Any, issues: list[ValidationIssue]) -> Optional[str]:
        if name is None or (isinstance(name, str) and not name.strip()):
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
            ))
            return None
        if not isinstance(name, str):
            issues.append(ValidationIssue(
                field="name",
                issue_type="invalid_format",
                message=f"Name must be text, got {type(name).__name__}",
            ))
            return None

        name = name.strip()
        if len(name) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Name must be at most {MAX_NAME_LENGTH} characters",
            ))
            return None
        return name

    def _check_amount(
        self,
        amount: AmountInput,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            ))
            return None

        # bool is an int subclass; True is not an amount
        if isinstance(amount, bool) or not isinstance(amount, (str, int, float, Decimal)):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount must be a number, got {type(amount).__name__}",
            ))
            return None

        try:
            # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
            value = Decimal(amount.strip() if isinstance(amount, str) else str(amount))
        except InvalidOperation:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount is not a number: {amount!r}",
            ))
            return None

        if not value.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a finite number",
            ))
            return None
        if value < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="negative",
                message="Amount cannot be negative",
            ))
            return None
        return value

    def _check_date(self, date: DateInput, issues: list[ValidationIssue]) -> Optional[str]:
        if date is None:
            return self._today().isoformat()

        # datetime is a date subclass; drop the time part
        if isinstance(date, dt.datetime):
            return date.date().isoformat()
        if isinstance(date, dt.date):
            return date.isoformat()

        if isinstance(date, str):
            text = date.strip()
            if not text:
                return self._today().isoformat()
            if _ISO_DATE.match(text):
                try:
                    return dt.date.fromisoformat(text).isoformat()
                except ValueError:
                    issues.append(ValidationIssue(
                        field="date",
                        issue_type="invalid_value",
                        message=f"No such calendar date: {text}",
                    ))
                    return None

        issues.append(ValidationIssue(
            field="date",
            issue_type="invalid_format",
            message=f"Date must be YYYY-MM-DD, got {date!r}",
        ))
        return None
