"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the persistence adapter.
This allows us to:
1. Swap the JSON file slot for another durable key-value store later
2. Use in-memory storage for testing
3. Keep the contribution store decoupled from storage implementation

The interface is intentionally tiny - the adapter only ever reads or
writes a full snapshot of the collection.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from contribution_ledger.models.contribution import Contribution


class ContributionStorageInterface(ABC):
    """
    Abstract interface for contribution snapshot storage.

    Implementations must fail softly: neither method raises.
    """

    @abstractmethod
    async def load(self) -> list[Contribution]:
        """
        Read the last saved snapshot.

        Returns:
            The stored contributions in collection order, or an empty
            list if nothing was saved yet or the snapshot is unreadable
        """
        pass

    @abstractmethod
    async def save(self, contributions: Sequence[Contribution]) -> bool:
        """
        Replace the stored snapshot with `contributions`.

        Args:
            contributions: The full collection, in collection order

        Returns:
            True if the snapshot was written, False if the write failed
        """
        pass

    @property
    def description(self) -> str:
        """Short human-readable name of where data is kept."""
        return type(self).__name__


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """A snapshot could not be serialized or deserialized."""
    pass


class SlotUnavailableError(StorageError):
    """The durable key-value slot could not be read or written."""
    pass
