"""
Snapshot codec and soft-failing storage base.

A snapshot is the whole collection as one JSON array, one object per
record in collection order:

    [{"id": "...", "name": "Alice", "amount": "50.00", "date": "2024-03-01"}]

Amounts are written as strings so no precision is lost on the way back.

DESIGN DECISION: A snapshot that fails to parse is rejected as a whole.
We do not try to salvage individual records; the failure is logged and
the collection starts empty.
"""

import json
from abc import abstractmethod
from collections.abc import Sequence
from typing import Optional

import structlog
from pydantic import ValidationError as SchemaError

from contribution_ledger.audit import AuditLogger
from contribution_ledger.models.contribution import Contribution
from contribution_ledger.services.storage.interface import (
    ContributionStorageInterface,
    PersistenceError,
    StorageError,
)


logger = structlog.get_logger(__name__)


def serialize_snapshot(contributions: Sequence[Contribution]) -> str:
    """Serialize the full collection to a snapshot blob."""
    try:
        return json.dumps(
            [c.to_snapshot_dict() for c in contributions],
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Could not serialize snapshot: {e}") from e


def deserialize_snapshot(blob: Optional[str]) -> list[Contribution]:
    """
    Parse a snapshot blob back into contributions.

    An absent or blank blob means nothing was ever saved. Duplicate ids keep
    their first occurrence.

    Raises:
        PersistenceError: If the blob is not a valid snapshot
    """
    if blob is None or not blob.strip():
        return []

    try:
        raw = json.loads(blob)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise PersistenceError(
            f"Snapshot must be a list of records, got {type(raw).__name__}"
        )

    contributions: list[Contribution] = []
    seen: set[str] = set()
    for position, item in enumerate(raw):
        try:
            contribution = Contribution.model_validate(item)
        except SchemaError as e:
            raise PersistenceError(
                f"Snapshot record {position} is invalid: {e.error_count()} errors"
            ) from e

        if contribution.id in seen:
            logger.warning(
                "duplicate_contribution_dropped",
                contribution_id=contribution.id,
                position=position,
            )
            continue
        seen.add(contribution.id)
        contributions.append(contribution)

    return contributions


class SnapshotStorage(ContributionStorageInterface):
    """
    Base class for storages that keep the snapshot as one blob.

    Subclasses only move bytes: `_read_blob` and `_write_blob` may raise
    StorageError. This class owns the codec and the soft-failure policy.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger

    @abstractmethod
    async def _read_blob(self) -> Optional[str]:
        """Return the stored blob, or None if the slot is empty."""

    @abstractmethod
    async def _write_blob(self, blob: str) -> None:
        """Replace the stored blob atomically."""

    async def load(self) -> list[Contribution]:
        try:
            blob = await self._read_blob()
            contributions = deserialize_snapshot(blob)
        except StorageError as e:
            logger.error("snapshot_load_failed", source=self.description, error=str(e))
            if self._audit_logger:
                self._audit_logger.log_snapshot_load_failed(self.description, str(e))
            return []

        if self._audit_logger:
            self._audit_logger.log_snapshot_loaded(len(contributions), self.description)
        return contributions

    async def save(self, contributions: Sequence[Contribution]) -> bool:
        count = len(contributions)
        try:
            blob = serialize_snapshot(contributions)
            await self._write_blob(blob)
        except StorageError as e:
            logger.error(
                "snapshot_save_failed",
                source=self.description,
                count=count,
                error=str(e),
            )
            if self._audit_logger:
                self._audit_logger.log_snapshot_save_failed(count, self.description, str(e))
            return False

        if self._audit_logger:
            self._audit_logger.log_snapshot_saved(count, self.description)
        return True
