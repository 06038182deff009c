"""
Data Models Package

This package contains all Pydantic models used in the Contribution Ledger.
All data flowing through the store must conform to these schemas.
"""

from contribution_ledger.models.contribution import (
    Contribution,
    ContributionDraft,
    ValidationIssue,
    ValidationResult,
    new_contribution_id,
)
from contribution_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Contribution models
    "Contribution",
    "ContributionDraft",
    "ValidationIssue",
    "ValidationResult",
    "new_contribution_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
