"""In-memory snapshot storage, for tests and throwaway sessions."""

from typing import Optional

from contribution_ledger.audit import AuditLogger
from contribution_ledger.services.storage.json_file import DEFAULT_SLOT_KEY
from contribution_ledger.services.storage.snapshot import SnapshotStorage


class InMemoryStorage(SnapshotStorage):
    """
    Keeps snapshot blobs in a dict.

    Several instances may share one `slots` dict to simulate a restart
    against the same durable store.
    """

    def __init__(
        self,
        slots: Optional[dict[str, str]] = None,
        key: str = DEFAULT_SLOT_KEY,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self.slots = slots if slots is not None else {}
        self._key = key
        self.write_count = 0

    @property
    def description(self) -> str:
        return f"memory[{self._key}]"

    @property
    def blob(self) -> Optional[str]:
        return self.slots.get(self._key)

    async def _read_blob(self) -> Optional[str]:
        return self.slots.get(self._key)

    async def _write_blob(self, blob: str) -> None:
        self.slots[self._key] = blob
        self.write_count += 1
