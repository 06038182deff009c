"""
Audit Logger

DESIGN DECISION: Every change to the contribution collection is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. A visible trail when a snapshot is dropped

The audit logger:
- Never raises (a logging failure must not break a store operation)
- Keeps the emitted events in a bounded in-memory history so the
  presentation layer can show recent activity
"""

import logging
from collections import deque
from typing import Optional

import structlog

from contribution_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from contribution_ledger.models.contribution import Contribution


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the most
    recent ones.
    """

    def __init__(self, history_size: int = 100):
        self._logger = structlog.get_logger("contribution_ledger.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    @property
    def history(self) -> list[AuditEvent]:
        """Recent events, oldest first."""
        return list(self._history)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).warning(
                "audit logging failed for %s: %s", event.event_id, e
            )

    def log_contribution_added(self, contribution: Contribution) -> None:
        """Log a new record."""
        self.log(AuditEventBuilder.contribution_added(
            contribution_id=contribution.id,
            name=contribution.name,
            amount=str(contribution.amount),
            date=contribution.date,
        ))

    def log_contribution_updated(
        self,
        before: Contribution,
        after: Contribution,
    ) -> None:
        """Log an update, recording only the fields that changed."""
        changes = {}
        for field in ("name", "amount", "date"):
            old, new = getattr(before, field), getattr(after, field)
            if old != new:
                changes[field] = {"from": str(old), "to": str(new)}
        self.log(AuditEventBuilder.contribution_updated(
            contribution_id=after.id,
            changes=changes,
        ))

    def log_contribution_removed(self, contribution: Contribution) -> None:
        """Log a removal."""
        self.log(AuditEventBuilder.contribution_removed(
            contribution_id=contribution.id,
            name=contribution.name,
            amount=str(contribution.amount),
        ))

    def log_edit_started(self, contribution_id: str) -> None:
        self.log(AuditEventBuilder.edit_started(contribution_id))

    def log_edit_cancelled(self, contribution_id: str) -> None:
        self.log(AuditEventBuilder.edit_cancelled(contribution_id))

    def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        contribution_id: Optional[str] = None,
    ) -> None:
        """Log rejected input."""
        self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            contribution_id=contribution_id,
        ))

    def log_not_found(self, operation: str, contribution_id: str) -> None:
        self.log(AuditEventBuilder.not_found(operation, contribution_id))

    def log_snapshot_loaded(self, count: int, source: str) -> None:
        self.log(AuditEventBuilder.snapshot_loaded(count, source))

    def log_snapshot_saved(self, count: int, source: str) -> None:
        self.log(AuditEventBuilder.snapshot_saved(count, source))

    def log_snapshot_load_failed(self, source: str, error_message: str) -> None:
        """Log a dropped snapshot. The collection starts empty after this."""
        self.log(AuditEventBuilder.snapshot_load_failed(source, error_message))

    def log_snapshot_save_failed(
        self,
        count: int,
        source: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.snapshot_save_failed(count, source, error_message))
