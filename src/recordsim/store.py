"""In-memory scoped record store, dict-backed, one per scope."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from recordsim.exceptions import RecordStoreError
from recordsim.models import FieldEquals, MatchAll, Query, Record, RecordID, Scope

log = logging.getLogger(__name__)

Matcher = Union[RecordID, Iterable[RecordID], MatchAll, FieldEquals, Query]


@dataclass
class FaultInjection:
    """Test-configured failures applied to operations that reach this level."""

    transaction_error: Optional[RecordStoreError] = None
    failing_ids: set[RecordID] = field(default_factory=set)
    item_error: Optional[RecordStoreError] = None

    def clear(self) -> None:
        self.transaction_error = None
        self.failing_ids = set()
        self.item_error = None


class ScopedRecordStore:
    """Records of one scope, keyed by id and kept in insertion order.

    Records are copied on the way in and on the way out so callers never
    alias stored state.
    """

    def __init__(self, scope: Scope) -> None:
        self.scope = scope
        self.faults = FaultInjection()
        self._records: dict[RecordID, Record] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def add_records(self, records: Iterable[Record]) -> None:
        """Upsert by id.  An overwrite keeps the record's original position."""
        with self._lock:
            for record in records:
                self._records[record.record_id] = record.model_copy(deep=True)
        log.debug(f"{self.scope.value} store holds {len(self._records)} records")

    def get_record(self, record_id: RecordID) -> Record | None:
        with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record is not None else None

    def get_records(self, matching: Optional[Matcher] = None) -> list[Record]:
        """Return all records, or those matching ids, a predicate, or a query.

        Ids not in the store are dropped silently.
        """
        with self._lock:
            if matching is None:
                selected = list(self._records.values())
            elif isinstance(matching, (MatchAll, FieldEquals, Query)):
                test = matching.matches if isinstance(matching, Query) else matching.evaluate
                selected = [r for r in self._records.values() if test(r)]
            else:
                ids = [matching] if isinstance(matching, RecordID) else matching
                selected = [self._records[rid] for rid in ids if rid in self._records]
            return [r.model_copy(deep=True) for r in selected]

    def remove_records(self, record_ids: Iterable[RecordID]) -> None:
        """Delete by id; absent ids are a no-op."""
        with self._lock:
            for record_id in record_ids:
                self._records.pop(record_id, None)

    def reset_store(self) -> None:
        """Remove every record and clear this scope's fault overrides."""
        with self._lock:
            self._records.clear()
            self.faults.clear()
        log.debug(f"Reset {self.scope.value} store")
