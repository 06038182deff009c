"""
Audit Models for the Contribution Ledger

Every store operation and every persistence outcome is described by an
AuditEvent. This provides:
1. Traceability of all changes to the collection
2. Debugging information when a snapshot fails to load or save
3. A visible record of data loss (a dropped snapshot is never silent)

DESIGN DECISION: Audit events are emitted, never edited.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store mutations
    CONTRIBUTION_ADDED = "contribution_added"
    CONTRIBUTION_UPDATED = "contribution_updated"
    CONTRIBUTION_REMOVED = "contribution_removed"

    # Editing reference
    EDIT_STARTED = "edit_started"
    EDIT_CANCELLED = "edit_cancelled"

    # Rejected requests
    VALIDATION_FAILED = "validation_failed"
    CONTRIBUTION_NOT_FOUND = "contribution_not_found"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"
    SNAPSHOT_SAVE_FAILED = "snapshot_save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Which record this is about, if any
    contribution_id: Optional[str] = Field(
        default=None,
        description="Id of the contribution this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "contribution_id": self.contribution_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.contribution_added(contribution)
        event = AuditEventBuilder.snapshot_save_failed(count, error)
    """

    @staticmethod
    def contribution_added(
        contribution_id: str,
        name: str,
        amount: str,
        date: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_ADDED,
            contribution_id=contribution_id,
            description=f"Contribution added: {name} - {amount} on {date}",
            details={
                "name": name,
                "amount": amount,
                "date": date,
            },
        )

    @staticmethod
    def contribution_updated(
        contribution_id: str,
        changes: dict[str, dict[str, str]],
    ) -> AuditEvent:
        changed = ", ".join(sorted(changes)) or "nothing"
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_UPDATED,
            contribution_id=contribution_id,
            description=f"Contribution updated: {changed}",
            details={"changes": changes},
        )

    @staticmethod
    def contribution_removed(
        contribution_id: str,
        name: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_REMOVED,
            contribution_id=contribution_id,
            description=f"Contribution removed: {name} - {amount}",
            details={
                "name": name,
                "amount": amount,
            },
        )

    @staticmethod
    def edit_started(contribution_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_STARTED,
            severity=AuditSeverity.DEBUG,
            contribution_id=contribution_id,
            description="Editing started",
        )

    @staticmethod
    def edit_cancelled(contribution_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EDIT_CANCELLED,
            severity=AuditSeverity.DEBUG,
            contribution_id=contribution_id,
            description="Editing cancelled",
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        contribution_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            contribution_id=contribution_id,
            description=f"{operation.capitalize()} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def not_found(operation: str, contribution_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            contribution_id=contribution_id,
            description=f"{operation.capitalize()} referenced an unknown contribution",
            details={"operation": operation},
        )

    @staticmethod
    def snapshot_loaded(count: int, source: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            description=f"Loaded {count} contributions from {source}",
            details={
                "count": count,
                "source": source,
            },
        )

    @staticmethod
    def snapshot_saved(count: int, source: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            severity=AuditSeverity.DEBUG,
            description=f"Saved {count} contributions to {source}",
            details={
                "count": count,
                "source": source,
            },
        )

    @staticmethod
    def snapshot_load_failed(source: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Could not load snapshot from {source}; starting empty",
            error_message=error_message,
            details={"source": source},
        )

    @staticmethod
    def snapshot_save_failed(
        count: int,
        source: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Could not save {count} contributions to {source}",
            error_message=error_message,
            details={
                "count": count,
                "source": source,
            },
        )
