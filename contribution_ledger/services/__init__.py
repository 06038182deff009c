"""Services package."""

from contribution_ledger.services.storage import (
    ContributionStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
    PersistenceError,
    SlotUnavailableError,
    SnapshotStorage,
    StorageError,
)

__all__ = [
    "ContributionStorageInterface",
    "InMemoryStorage",
    "JsonFileStorage",
    "PersistenceError",
    "SlotUnavailableError",
    "SnapshotStorage",
    "StorageError",
]
