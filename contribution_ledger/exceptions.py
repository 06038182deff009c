"""
Store-level exceptions.

Storage failures have their own family in `services.storage.interface`
and never reach callers of the store.
"""

from typing import Optional

from contribution_ledger.models.contribution import ValidationIssue


class LedgerError(Exception):
    """Base exception for contribution store operations."""
    pass


class ValidationError(LedgerError):
    """
    Add/update input was rejected. Nothing was changed or saved.

    `issues` lists every problem found, not just the first.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues) or "Invalid input")

    def issues_for(self, field: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.field == field]


class NotFoundError(LedgerError):
    """No contribution with the given id. Safe to ignore."""

    def __init__(self, contribution_id: str, operation: Optional[str] = None):
        self.contribution_id = contribution_id
        self.operation = operation
        super().__init__(f"Contribution not found: {contribution_id}")
