"""
JSON File Storage Implementation

DESIGN DECISION: The snapshot lives in a local JSON file used as a small
key-value store: the file maps slot keys to snapshot blobs, and the ledger
owns exactly one slot (`@contributions` by default). This is because:
1. No database setup required
2. Users can open the file and read their data
3. The slot layout leaves room for other keys in the same file

TRADEOFFS:
- Every save rewrites the whole file (fine for hand-entered records)
- No transactions (each write is a single atomic rename instead)

Blocking file I/O runs in a worker thread so the store's event loop is
never blocked while a snapshot is being written.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from contribution_ledger.audit import AuditLogger
from contribution_ledger.services.storage.interface import (
    PersistenceError,
    SlotUnavailableError,
)
from contribution_ledger.services.storage.snapshot import SnapshotStorage


logger = structlog.get_logger(__name__)

DEFAULT_SLOT_KEY = "@contributions"


class JsonFileStorage(SnapshotStorage):
    """
    Durable key-value slot backed by a JSON file.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so readers never see a half-written file.
    """

    def __init__(
        self,
        path: Path,
        key: str = DEFAULT_SLOT_KEY,
        write_attempts: int = 3,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._path = Path(path)
        self._key = key
        self._write_attempts = write_attempts

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return self._key

    @property
    def description(self) -> str:
        return f"{self._path}[{self._key}]"

    async def _read_blob(self) -> Optional[str]:
        return await asyncio.to_thread(self._read_blob_sync)

    async def _write_blob(self, blob: str) -> None:
        await asyncio.to_thread(self._write_blob_sync, blob)

    def _read_slots(self) -> dict:
        """
        Read the whole slot file.

        Raises:
            SlotUnavailableError: If the file exists but can't be read
            PersistenceError: If the file isn't a JSON object
        """
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise SlotUnavailableError(f"Cannot read {self._path}: {e}") from e

        if not text.strip():
            return {}
        try:
            slots = json.loads(text)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"{self._path} is not valid JSON: {e}") from e
        if not isinstance(slots, dict):
            raise PersistenceError(f"{self._path} does not hold a key-value mapping")
        return slots

    def _read_blob_sync(self) -> Optional[str]:
        blob = self._read_slots().get(self._key)
        if blob is not None and not isinstance(blob, str):
            raise PersistenceError(f"Slot {self._key!r} does not hold a snapshot blob")
        return blob

    def _write_blob_sync(self, blob: str) -> None:
        try:
            slots = self._read_slots()
        except PersistenceError as e:
            # Keep the unreadable file around instead of silently overwriting it
            backup = self._backup_path()
            logger.warning(
                "slot_file_unreadable",
                path=str(self._path),
                backup=str(backup),
                error=str(e),
            )
            try:
                os.replace(self._path, backup)
            except OSError as move_error:
                raise SlotUnavailableError(
                    f"Cannot move aside unreadable {self._path}: {move_error}"
                ) from move_error
            slots = {}

        slots[self._key] = blob
        text = json.dumps(slots, ensure_ascii=False, indent=2)

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._atomic_write(text)
        except OSError as e:
            raise SlotUnavailableError(f"Cannot write {self._path}: {e}") from e

    def _backup_path(self) -> Path:
        """First free name of `<file>.corrupt`, `<file>.corrupt.1`, ..."""
        backup = self._path.with_name(self._path.name + ".corrupt")
        counter = 0
        while backup.exists():
            counter += 1
            backup = self._path.with_name(f"{self._path.name}.corrupt.{counter}")
        return backup

    def _atomic_write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
