"""
Storage Services Package

Provides the abstract persistence interface and concrete snapshot storages.
The JSON file slot is the default backend; the in-memory one is for tests.
"""

from contribution_ledger.services.storage.interface import (
    ContributionStorageInterface,
    PersistenceError,
    SlotUnavailableError,
    StorageError,
)
from contribution_ledger.services.storage.snapshot import (
    SnapshotStorage,
    deserialize_snapshot,
    serialize_snapshot,
)
from contribution_ledger.services.storage.json_file import (
    DEFAULT_SLOT_KEY,
    JsonFileStorage,
)
from contribution_ledger.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "ContributionStorageInterface",
    "SnapshotStorage",
    # Exceptions
    "PersistenceError",
    "SlotUnavailableError",
    "StorageError",
    # Codec
    "deserialize_snapshot",
    "serialize_snapshot",
    # Implementations
    "DEFAULT_SLOT_KEY",
    "InMemoryStorage",
    "JsonFileStorage",
]
