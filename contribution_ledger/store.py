"""
Contribution Store

This module owns the in-memory collection of contributions and defines
every operation the presentation layer may perform on it:
add, update, remove, begin/cancel edit, sorted listing and total.

DESIGN DECISION: Every mutating operation is "mutate, then persist".
The record list is changed synchronously, a snapshot of it is captured
in the same step, and only then does the operation await the storage
write. Two consequences:
- Writes are issued in mutation order and each one is a full snapshot,
  so a later write always supersedes an earlier one.
- A failed write never rolls back the in-memory change; the next
  successful write persists the latest state.

The store is driven by a single actor (the UI event loop). It takes no
locks.
"""

from collections.abc import Callable, Iterator
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

import structlog

from contribution_ledger.audit import AuditLogger, configure_logging
from contribution_ledger.config import Settings, get_settings
from contribution_ledger.exceptions import NotFoundError, ValidationError
from contribution_ledger.models.contribution import (
    Contribution,
    ContributionDraft,
    new_contribution_id,
)
from contribution_ledger.services.storage import (
    ContributionStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
)
from contribution_ledger.validation import ContributionValidator
from contribution_ledger.validation.validator import AmountInput, DateInput


logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")

Listener = Callable[["ContributionStore"], None]


class ContributionListing:
    """
    Lazy, restartable view of the store sorted by date.

    Nothing is sorted until iteration starts, and every iteration sorts the
    records as they are at that moment.
    """

    def __init__(
        self,
        source: Callable[[], list[Contribution]],
        descending: bool = True,
    ):
        self._source = source
        self._descending = descending

    def __iter__(self) -> Iterator[Contribution]:
        # sorted() is stable, also with reverse=True: equal dates keep
        # insertion order either way
        ordered = sorted(self._source(), key=lambda c: c.date, reverse=self._descending)
        return iter(ordered)

    def __len__(self) -> int:
        return len(self._source())

    def __bool__(self) -> bool:
        return bool(self._source())


class ContributionStore:
    """
    The single owner of the contribution collection.

    Records are kept in insertion order. Display order is derived by
    `list_contributions`.
    """

    def __init__(
        self,
        storage: Optional[ContributionStorageInterface] = None,
        validator: Optional[ContributionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        id_factory: Callable[[], str] = new_contribution_id,
    ):
        self._storage = storage or InMemoryStorage()
        self._validator = validator or ContributionValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._id_factory = id_factory

        self._records: list[Contribution] = []
        self._editing_id: Optional[str] = None
        self._listeners: list[Listener] = []

    # -------------------------------------------------------------------------
    # Read-only access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, contribution_id: object) -> bool:
        return self._index_of(contribution_id) is not None

    @property
    def editing_id(self) -> Optional[str]:
        """Id of the record being edited, or None."""
        return self._editing_id

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def storage(self) -> ContributionStorageInterface:
        return self._storage

    def get(self, contribution_id: str) -> Contribution:
        """
        Raises:
            NotFoundError: If no record has this id
        """
        index = self._index_of(contribution_id)
        if index is None:
            raise NotFoundError(contribution_id, "get")
        return self._records[index]

    def list_contributions(self, descending: bool = True) -> ContributionListing:
        """Records sorted by date, newest first unless `descending` is False."""
        return ContributionListing(lambda: self._records, descending=descending)

    def total(self, precise: bool = False) -> Decimal:
        """
        Sum of all amounts.

        Rounded half-up to cents for display; pass precise=True for the
        unrounded sum.
        """
        amounts = [c.amount for c in self._records]
        with localcontext() as ctx:
            # Wide enough that neither the sum nor the cent quantize rounds
            ctx.prec = _exact_precision(amounts)
            amount = sum(amounts, Decimal("0"))
            if precise:
                return amount
            return amount.quantize(CENTS, rounding=ROUND_HALF_UP)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self) -> list[Contribution]:
        """
        Replace the collection with the stored snapshot.

        A missing or unreadable snapshot yields an empty collection.
        """
        self._records = list(await self._storage.load())
        self._editing_id = None
        self._notify()
        return list(self._records)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add(
        self,
        name: str,
        amount: AmountInput,
        date: DateInput = None,
    ) -> Contribution:
        """
        Validate and append a new contribution, then persist.

        Raises:
            ValidationError: If name, amount or date is invalid
        """
        draft = self._require_valid("add", name, amount, date)
        contribution = draft.to_contribution(self._next_id())

        self._records.append(contribution)
        self._audit_logger.log_contribution_added(contribution)
        await self._persist()
        return contribution

    async def update(
        self,
        contribution_id: str,
        name: str,
        amount: AmountInput,
        date: DateInput = None,
    ) -> Contribution:
        """
        Replace a record's fields, keeping its id and position, then persist.

        A missing or blank date keeps the record's current date. Clears the
        editing reference.

        Raises:
            ValidationError: If name, amount or date is invalid
            NotFoundError: If no record has this id
        """
        index = self._require_index("update", contribution_id)
        before = self._records[index]
        if date is None or (isinstance(date, str) and not date.strip()):
            date = before.date
        draft = self._require_valid("update", name, amount, date, contribution_id)

        updated = draft.to_contribution(before.id)
        self._records[index] = updated
        self._editing_id = None

        self._audit_logger.log_contribution_updated(before, updated)
        await self._persist()
        return updated

    async def remove(self, contribution_id: str) -> Contribution:
        """
        Delete a record, then persist.

        Raises:
            NotFoundError: If no record has this id. The collection is left
                untouched and nothing is saved, so retrying is harmless.
        """
        index = self._require_index("remove", contribution_id)
        removed = self._records.pop(index)
        if self._editing_id == contribution_id:
            self._editing_id = None

        self._audit_logger.log_contribution_removed(removed)
        await self._persist()
        return removed

    async def submit(
        self,
        name: str,
        amount: AmountInput,
        date: DateInput = None,
    ) -> Contribution:
        """
        The form's single save action: update the record being edited,
        or add a new one when nothing is being edited.
        """
        if self._editing_id is not None:
            return await self.update(self._editing_id, name, amount, date)
        return await self.add(name, amount, date)

    # -------------------------------------------------------------------------
    # Editing reference
    # -------------------------------------------------------------------------

    def begin_edit(self, contribution_id: str) -> Contribution:
        """
        Mark a record as being edited and return it for pre-filling a form.

        Raises:
            NotFoundError: If no record has this id
        """
        index = self._require_index("begin_edit", contribution_id)
        self._editing_id = contribution_id
        self._audit_logger.log_edit_started(contribution_id)
        return self._records[index]

    def cancel_edit(self) -> None:
        """Forget the editing reference. No-op when nothing is being edited."""
        if self._editing_id is None:
            return
        self._audit_logger.log_edit_cancelled(self._editing_id)
        self._editing_id = None

    # -------------------------------------------------------------------------
    # Change notifications
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call `listener(store)` after every mutation and after load.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _index_of(self, contribution_id: object) -> Optional[int]:
        for index, contribution in enumerate(self._records):
            if contribution.id == contribution_id:
                return index
        return None

    def _require_index(self, operation: str, contribution_id: str) -> int:
        index = self._index_of(contribution_id)
        if index is None:
            self._audit_logger.log_not_found(operation, contribution_id)
            raise NotFoundError(contribution_id, operation)
        return index

    def _require_valid(
        self,
        operation: str,
        name: str,
        amount: AmountInput,
        date: DateInput,
        contribution_id: Optional[str] = None,
    ) -> ContributionDraft:
        try:
            return self._validator.require_valid(name, amount, date)
        except ValidationError as e:
            self._audit_logger.log_validation_failed(
                operation=operation,
                issues=[issue.model_dump() for issue in e.issues],
                contribution_id=contribution_id,
            )
            raise

    def _next_id(self) -> str:
        contribution_id = self._id_factory()
        while contribution_id in self:
            contribution_id = self._id_factory()
        return contribution_id

    async def _persist(self) -> bool:
        # Snapshot and notify before the first await
        snapshot = list(self._records)
        self._notify()
        return await self._storage.save(snapshot)

    def _notify(self) -> None:
        # A failing listener must not abort the mutation it is told about
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(
                    "listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                    exc_info=True,
                )


def _exact_precision(amounts: list[Decimal]) -> int:
    """Decimal digits needed to sum `amounts` and quantize to cents exactly."""
    if not amounts:
        return 28
    highest = max(a.adjusted() for a in amounts) + 1
    lowest = min(min(a.as_tuple().exponent for a in amounts), CENTS.as_tuple().exponent)
    # Carries from the addition need at most len(str(count)) extra digits
    return max(28, highest - lowest + len(str(len(amounts))) + 1)


def create_storage(
    settings: Optional[Settings] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> ContributionStorageInterface:
    """Build the snapshot storage selected by the storage settings."""
    storage_settings = (settings or get_settings()).storage
    if storage_settings.backend == "memory":
        return InMemoryStorage(key=storage_settings.key, audit_logger=audit_logger)
    return JsonFileStorage(
        path=storage_settings.path,
        key=storage_settings.key,
        write_attempts=storage_settings.write_attempts,
        audit_logger=audit_logger,
    )


async def create_store(settings: Optional[Settings] = None) -> ContributionStore:
    """
    Factory function to create a ready-to-use, loaded store.

    Args:
        settings: Settings to use. Defaults to the cached environment settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.app.effective_log_level)

    audit_logger = AuditLogger()
    store = ContributionStore(
        storage=create_storage(settings, audit_logger),
        audit_logger=audit_logger,
    )
    await store.load()
    return store
