"""Database operations: modify, fetch and query.

Each operation carries its inputs, its registered callbacks, and optional
fault injection (a transaction-wide error and a set of record ids flagged to
fail individually).  Submitting one to a database hands it to the engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Iterable, Optional

from recordsim.callbacks import (
    FETCH_CALLBACKS,
    MODIFY_CALLBACKS,
    QUERY_CALLBACKS,
    Callback,
    Completion,
)
from recordsim.exceptions import PartialFailureError, RecordStoreError
from recordsim.models import Query, Record, RecordID

if TYPE_CHECKING:
    from recordsim.database import MockDatabase


def _check_item_error(error: Optional[RecordStoreError]) -> None:
    if isinstance(error, PartialFailureError):
        raise ValueError("An item error cannot be a partial failure")


class DatabaseOperation:
    """Base operation.  Submitting a bare ``DatabaseOperation`` is unsupported."""

    accepted_callbacks: ClassVar[tuple[type[Callback], ...]] = (Completion,)

    def __init__(
        self,
        *,
        name: str | None = None,
        transaction_error: RecordStoreError | None = None,
        failing_ids: Iterable[RecordID] | None = None,
        item_error: RecordStoreError | None = None,
    ) -> None:
        _check_item_error(item_error)
        self.name = name
        self.transaction_error = transaction_error
        self.failing_ids: set[RecordID] = set(failing_ids or ())
        self.item_error = item_error
        self.callbacks: list[Callback] = []
        # Callback kinds in the order the engine reached them.
        self.fired: list[str] = []
        # Assigned by ``MockDatabase.submit``.
        self.database: MockDatabase | None = None

    def on(self, callback: Callback) -> DatabaseOperation:
        """Register ``callback``; returns self so registrations can chain."""
        if not isinstance(callback, self.accepted_callbacks):
            accepted = ", ".join(c.__name__ for c in self.accepted_callbacks)
            raise TypeError(f"{type(self).__name__} does not produce {callback.kind} (accepts: {accepted})")
        self.callbacks.append(callback)
        return self

    def callbacks_of(self, kind: type[Callback]) -> list[Callback]:
        return [cb for cb in self.callbacks if type(cb) is kind]

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<{type(self).__name__}{label}>"


class ModifyRecordsOperation(DatabaseOperation):
    """Save and/or delete a batch of records."""

    accepted_callbacks = MODIFY_CALLBACKS + (Completion,)

    def __init__(
        self,
        records_to_save: Iterable[Record] | None = None,
        record_ids_to_delete: Iterable[RecordID] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.records_to_save: list[Record] = list(records_to_save or ())
        self.record_ids_to_delete: list[RecordID] = list(record_ids_to_delete or ())


class FetchRecordsOperation(DatabaseOperation):
    """Fetch records by id, optionally projected to ``desired_keys``."""

    accepted_callbacks = FETCH_CALLBACKS + (Completion,)

    def __init__(
        self,
        record_ids: Iterable[RecordID] | None = None,
        desired_keys: Iterable[str] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.record_ids: list[RecordID] = list(record_ids or ())
        self.desired_keys: list[str] | None = list(desired_keys) if desired_keys is not None else None


class QueryOperation(DatabaseOperation):
    """Find records matching a query, in store insertion order.

    Only a transaction-wide error can be injected; queries have no per-record
    faults.  ``results_limit`` of ``None`` means unlimited.  No cursor is ever
    produced.
    """

    accepted_callbacks = QUERY_CALLBACKS + (Completion,)

    def __init__(
        self,
        query: Query | None = None,
        desired_keys: Iterable[str] | None = None,
        results_limit: int | None = None,
        *,
        name: str | None = None,
        transaction_error: RecordStoreError | None = None,
    ) -> None:
        super().__init__(name=name, transaction_error=transaction_error)
        if results_limit is not None and results_limit < 1:
            raise ValueError(f"results_limit must be >= 1 or None, got {results_limit}")
        self.query = query
        self.desired_keys: list[str] | None = list(desired_keys) if desired_keys is not None else None
        self.results_limit = results_limit
        self.cursor: None = None
