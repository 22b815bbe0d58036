"""Process-wide registry of the shared per-scope databases.

Usage::

    from recordsim import registry

    db = registry.shared_database(Scope.PUBLIC)   # created on first access
    registry.inject_faults(failing_ids=[rid])     # every scope
    registry.inject_faults(scope=Scope.PRIVATE, transaction_error=err)
    registry.reset()                              # before each test case

Every container resolving the same scope gets the same ``MockDatabase``
object; the three scopes are always distinct stores.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from recordsim.core.config import get_settings
from recordsim.database import MockDatabase
from recordsim.engine import get_engine
from recordsim.exceptions import PartialFailureError, RecordStoreError
from recordsim.models import RecordID, Scope
from recordsim.state import get_state, reset_state
from recordsim.store import FaultInjection, ScopedRecordStore

logger = logging.getLogger(__name__)

# ── Module-level state ──────────────────────────────────────────────

_databases: dict[Scope, MockDatabase] = {}
_lock = threading.Lock()


# ── Public API ──────────────────────────────────────────────────────


def shared_database(scope: Scope) -> MockDatabase:
    """Return the one database for ``scope``, creating it on first access."""
    with _lock:
        database = _databases.get(scope)
        if database is None:
            database = MockDatabase(scope, ScopedRecordStore(scope))
            _databases[scope] = database
            logger.debug("Created shared %s database", scope.value)
        return database


def get_store(scope: Scope) -> ScopedRecordStore:
    """Return the shared store for ``scope``."""
    return shared_database(scope).store


def global_faults() -> FaultInjection:
    """Faults applied to every operation in the process."""
    return get_state().global_faults


def inject_faults(
    *,
    scope: Optional[Scope] = None,
    transaction_error: Optional[RecordStoreError] = None,
    failing_ids: Optional[Iterable[RecordID]] = None,
    item_error: Optional[RecordStoreError] = None,
) -> FaultInjection:
    """Add faults for one scope, or for every scope when ``scope`` is None.

    Only the arguments given are changed; ``failing_ids`` are added to any
    already flagged.
    """
    if isinstance(item_error, PartialFailureError):
        raise ValueError("An item error cannot be a partial failure")
    faults = get_store(scope).faults if scope is not None else global_faults()
    if transaction_error is not None:
        faults.transaction_error = transaction_error
    if failing_ids is not None:
        faults.failing_ids = faults.failing_ids | set(failing_ids)
    if item_error is not None:
        faults.item_error = item_error
    return faults


def clear_faults(scope: Optional[Scope] = None) -> None:
    """Clear injected faults for one scope, or the process-wide ones."""
    if scope is not None:
        get_store(scope).faults.clear()
    else:
        global_faults().clear()


def reset() -> None:
    """Empty every scope and drop all overrides (for test setup).

    Waits for queued operations first so none of them writes after the reset.
    Database objects keep their identity; only their contents are cleared.
    """
    get_engine().drain(timeout=get_settings().drain_timeout_seconds)
    with _lock:
        for database in _databases.values():
            database.reset_store()
    reset_state()
    logger.debug("Registry reset")
