"""Operation engine: runs submitted operations against a scoped store.

One process-wide worker thread executes operations strictly one at a time, so
an operation's writes are visible to anything submitted after it.  Within an
operation the firing order is fixed:

    Modify:  per save: PerRecordSave, SaveProgress
             per delete: PerRecordDelete
             ModifyResult, Completion
    Fetch:   per present id: PerRecordFetched, FetchProgress
             FetchResult, Completion
    Query:   per match within the limit: RecordMatched
             QueryResult, Completion

When any item fails, the aggregate result is a ``PartialFailureError``
holding every item error; it replaces an injected transaction error.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

import structlog

from recordsim.callbacks import (
    Callback,
    Completion,
    FetchProgress,
    FetchResult,
    ModifyResult,
    PerRecordDelete,
    PerRecordFetched,
    PerRecordSave,
    QueryResult,
    RecordMatched,
    SaveProgress,
)
from recordsim.core.config import get_settings
from recordsim.exceptions import (
    OperationNotSupportedError,
    PartialFailureError,
    RecordStoreError,
    TransactionError,
)
from recordsim.models import RecordID, Result
from recordsim.operations import (
    DatabaseOperation,
    FetchRecordsOperation,
    ModifyRecordsOperation,
    QueryOperation,
)
from recordsim.store import FaultInjection, ScopedRecordStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedFaults:
    """Faults in effect for one operation after applying precedence."""

    transaction_error: Optional[RecordStoreError]
    failing_ids: frozenset[RecordID]
    item_error: RecordStoreError


def resolve_faults(operation: DatabaseOperation, chain: Iterable[FaultInjection] = ()) -> ResolvedFaults:
    """Merge an operation's faults with scope-level and process-level ones.

    The operation's own transaction error and item error win over those of
    the chain (first non-empty entry wins).  Flagged ids accumulate.
    """
    transaction_error = operation.transaction_error
    item_error = operation.item_error
    failing_ids = set(operation.failing_ids)

    for faults in chain:
        if transaction_error is None:
            transaction_error = faults.transaction_error
        if item_error is None:
            item_error = faults.item_error
        failing_ids |= faults.failing_ids

    if item_error is None:
        item_error = TransactionError(get_settings().item_error_code)

    return ResolvedFaults(
        transaction_error=transaction_error,
        failing_ids=frozenset(failing_ids),
        item_error=item_error,
    )


def transaction_outcome(
    item_errors: dict[RecordID, RecordStoreError],
    transaction_error: Optional[RecordStoreError],
) -> Result[None]:
    """Aggregate result: partial failure beats transaction error beats success."""
    if item_errors:
        return Result.failure(PartialFailureError(item_errors))
    if transaction_error is not None:
        return Result.failure(transaction_error)
    return Result.success()


class _Dispatcher:
    """Invokes the callbacks of one operation, isolating callback exceptions."""

    def __init__(self, operation: DatabaseOperation) -> None:
        self._operation = operation
        self.first_error: Exception | None = None

    def fire(self, kind: type[Callback], *args: Any) -> None:
        self._operation.fired.append(kind.__name__)
        for callback in self._operation.callbacks_of(kind):
            try:
                callback.fn(*args)
            except Exception as exc:
                log.exception("%s callback raised while running %r", kind.__name__, self._operation)
                if self.first_error is None:
                    self.first_error = exc


class OperationEngine:
    """Single-worker executor for database operations."""

    def __init__(self, thread_name: str = "recordsim-engine") -> None:
        self._thread_name = thread_name
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=thread_name)

    def submit(
        self,
        operation: DatabaseOperation,
        store: ScopedRecordStore,
        fault_chain: Iterable[FaultInjection] = (),
    ) -> Future[None]:
        """Queue ``operation`` and return immediately.

        Faults are resolved here, on the caller's thread, so an injection made
        after submission never reaches an operation already queued.

        The returned future resolves after the completion callback fires.  It
        carries ``OperationNotSupportedError`` for unmodelled operation types,
        or the first exception raised by a callback.
        """
        faults = resolve_faults(operation, fault_chain)
        log.debug("Queued %r for the %s store", operation, store.scope.value)
        return self._executor.submit(self.execute, operation, store, faults)

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> Future[Any]:
        """Run ``fn(*args)`` on the worker after everything queued before it."""
        return self._executor.submit(fn, *args)

    def drain(self, timeout: float | None = None) -> None:
        """Block until every job queued so far has finished."""
        if threading.current_thread().name.startswith(self._thread_name):
            raise RuntimeError("drain() cannot be called from an engine callback")
        self._executor.submit(lambda: None).result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ── Execution (runs on the worker) ──────────────────────────────

    def execute(
        self,
        operation: DatabaseOperation,
        store: ScopedRecordStore,
        faults: ResolvedFaults,
    ) -> None:
        """Run ``operation`` to completion on the calling thread.

        Log lines emitted meanwhile, including from callbacks, carry the
        operation type and scope as structlog context.
        """
        dispatcher = _Dispatcher(operation)

        with structlog.contextvars.bound_contextvars(operation=type(operation).__name__, scope=store.scope.value):
            if isinstance(operation, ModifyRecordsOperation):
                self._run_modify(operation, store, faults, dispatcher)
            elif isinstance(operation, FetchRecordsOperation):
                self._run_fetch(operation, store, faults, dispatcher)
            elif isinstance(operation, QueryOperation):
                self._run_query(operation, store, faults, dispatcher)
            else:
                error = OperationNotSupportedError(operation)
                log.warning(error.failure_reason)
                raise error

            dispatcher.fire(Completion)
        if dispatcher.first_error is not None:
            raise dispatcher.first_error

    def _run_modify(
        self,
        operation: ModifyRecordsOperation,
        store: ScopedRecordStore,
        faults: ResolvedFaults,
        dispatcher: _Dispatcher,
    ) -> None:
        item_errors: dict[RecordID, RecordStoreError] = {}
        batch = operation.records_to_save
        batch_has_errors = any(r.record_id in faults.failing_ids for r in batch)
        saved = 0

        for record in batch:
            record_id = record.record_id
            if record_id in faults.failing_ids:
                item_errors[record_id] = faults.item_error
                dispatcher.fire(PerRecordSave, record_id, Result.failure(faults.item_error))
            else:
                store.add_records([record])
                saved += 1
                dispatcher.fire(PerRecordSave, record_id, Result.success(record.model_copy(deep=True)))
            progress = saved / len(batch) if batch_has_errors else 1.0
            dispatcher.fire(SaveProgress, record.model_copy(deep=True), progress)

        for record_id in operation.record_ids_to_delete:
            if record_id in faults.failing_ids:
                item_errors[record_id] = faults.item_error
                dispatcher.fire(PerRecordDelete, record_id, Result.failure(faults.item_error))
            else:
                store.remove_records([record_id])
                dispatcher.fire(PerRecordDelete, record_id, Result.success())

        outcome = transaction_outcome(item_errors, faults.transaction_error)
        log.debug(
            "Modify on %s: saved %d, deleted %d, %d item errors",
            store.scope.value,
            saved,
            len(operation.record_ids_to_delete),
            len(item_errors),
        )
        dispatcher.fire(ModifyResult, outcome)

    def _run_fetch(
        self,
        operation: FetchRecordsOperation,
        store: ScopedRecordStore,
        faults: ResolvedFaults,
        dispatcher: _Dispatcher,
    ) -> None:
        item_errors: dict[RecordID, RecordStoreError] = {}

        for record_id in operation.record_ids:
            record = store.get_record(record_id)
            if record is None:
                # absent ids are skipped without a callback or an error
                continue
            if record_id in faults.failing_ids:
                item_errors[record_id] = faults.item_error
                dispatcher.fire(PerRecordFetched, record_id, Result.failure(faults.item_error))
                dispatcher.fire(FetchProgress, record_id, 0.0)
            else:
                dispatcher.fire(PerRecordFetched, record_id, Result.success(record.project(operation.desired_keys)))
                dispatcher.fire(FetchProgress, record_id, 1.0)

        dispatcher.fire(FetchResult, transaction_outcome(item_errors, faults.transaction_error))

    def _run_query(
        self,
        operation: QueryOperation,
        store: ScopedRecordStore,
        faults: ResolvedFaults,
        dispatcher: _Dispatcher,
    ) -> None:
        error = faults.transaction_error
        matched = 0

        if operation.query is not None:
            for record in store.get_records():
                if operation.results_limit is not None and matched >= operation.results_limit:
                    break
                if not operation.query.matches(record):
                    continue
                matched += 1
                if error is not None:
                    dispatcher.fire(RecordMatched, record.record_id, Result.failure(error))
                else:
                    dispatcher.fire(RecordMatched, record.record_id, Result.success(record.project(operation.desired_keys)))

        log.debug("Query on %s matched %d records", store.scope.value, matched)
        dispatcher.fire(QueryResult, Result.failure(error) if error is not None else Result.success(None))


# ── Module-level engine ─────────────────────────────────────────────

_engine: OperationEngine | None = None
_engine_lock = threading.Lock()


def get_engine() -> OperationEngine:
    """Return the process-wide engine, starting it on first use."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = OperationEngine(thread_name=get_settings().worker_thread_name)
        return _engine


def shutdown_engine(wait: bool = True) -> None:
    """Stop the process-wide engine; the next ``get_engine()`` starts a new one."""
    global _engine
    with _engine_lock:
        engine, _engine = _engine, None
    if engine is not None:
        engine.shutdown(wait=wait)
