"""Simulated database: a scoped store plus submission to the engine."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable, Iterable, Optional

from recordsim.engine import get_engine
from recordsim.exceptions import CapabilityMismatchError, OperationNotImplementedError
from recordsim.models import Query, Record, RecordID, Result, Scope
from recordsim.operations import DatabaseOperation
from recordsim.state import get_state
from recordsim.store import FaultInjection, Matcher, ScopedRecordStore

log = logging.getLogger(__name__)

_MODIFY_HINT = "Use ModifyRecordsOperation instead."
_FETCH_HINT = "Use FetchRecordsOperation instead."
_QUERY_HINT = "Use QueryOperation instead."


class MockDatabase:
    """In-memory stand-in for a scoped remote database.

    ``MockDatabase()`` builds an independent database with its own store.
    The databases a container hands out come from ``recordsim.registry`` and
    are shared per scope.
    """

    def __init__(self, scope: Scope = Scope.PRIVATE, store: ScopedRecordStore | None = None) -> None:
        self._scope = scope
        self.store = store if store is not None else ScopedRecordStore(scope)
        self.last_executed: DatabaseOperation | None = None

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def faults(self) -> FaultInjection:
        """Faults applied to every operation on this scope until ``reset_store()``."""
        return self.store.faults

    def __repr__(self) -> str:
        return f"<MockDatabase {self._scope.value} records={len(self.store)}>"

    # ── Direct store access (synchronous) ───────────────────────────

    def add_records(self, records: Iterable[Record]) -> None:
        self.store.add_records(records)

    def get_records(self, matching: Optional[Matcher] = None) -> list[Record]:
        return self.store.get_records(matching)

    def remove_records(self, record_ids: Iterable[RecordID]) -> None:
        self.store.remove_records(record_ids)

    def reset_store(self) -> None:
        self.store.reset_store()

    # ── Operations ──────────────────────────────────────────────────

    def submit(self, operation: DatabaseOperation) -> Future[None]:
        """Hand ``operation`` to the engine and return without waiting.

        Store outcomes arrive only through callbacks and the returned future.
        An object from another capability group is a programming error and
        raises ``CapabilityMismatchError`` here.
        """
        if not isinstance(operation, DatabaseOperation):
            raise CapabilityMismatchError(
                f"{type(operation).__name__} cannot be submitted to MockDatabase "
                "(expected a DatabaseOperation)"
            )
        operation.database = self
        self.last_executed = operation
        return get_engine().submit(operation, self.store, (self.store.faults, get_state().global_faults))

    add = submit

    # ── Single-record conveniences (not backed by the engine) ───────

    def save(self, record: Record, callback: Callable[[Optional[Record], Optional[Exception]], Any]) -> Future[Any]:
        return self._not_implemented("save", _MODIFY_HINT, callback, None)

    def delete(
        self, record_id: RecordID, callback: Callable[[Optional[RecordID], Optional[Exception]], Any]
    ) -> Future[Any]:
        return self._not_implemented("delete(record_id)", _MODIFY_HINT, callback, None)

    def fetch(
        self, record_id: RecordID, callback: Callable[[Optional[Record], Optional[Exception]], Any]
    ) -> Future[Any]:
        return self._not_implemented("fetch(record_id)", _FETCH_HINT, callback, None)

    def fetch_many(self, record_ids: Iterable[RecordID], callback: Callable[[Any], Any]) -> Future[Any]:
        return self._not_implemented("fetch(record_ids)", _FETCH_HINT, callback)

    def perform_query(
        self, query: Query, callback: Callable[[Optional[list[Record]], Optional[Exception]], Any]
    ) -> Future[Any]:
        return self._not_implemented("perform(query)", _QUERY_HINT, callback, None)

    def fetch_query(
        self,
        query: Query,
        callback: Callable[[Any], Any],
        *,
        desired_keys: Iterable[str] | None = None,
        results_limit: int | None = None,
    ) -> Future[Any]:
        return self._not_implemented("fetch(query, desired_keys, results_limit)", _QUERY_HINT, callback)

    def _not_implemented(self, name: str, hint: str, callback: Callable[..., Any], *leading: Any) -> Future[Any]:
        """Deliver ``OperationNotImplementedError`` to ``callback`` on the engine worker.

        Callbacks taking ``(value, error)`` get ``None`` first; callbacks taking a
        single result get a failed ``Result``.
        """
        error = OperationNotImplementedError(name, hint)
        log.debug("%s called on %r", name, self)
        if leading:
            return get_engine().call_soon(callback, *leading, error)
        return get_engine().call_soon(callback, Result.failure(error))
