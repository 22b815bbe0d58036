"""Typed callback variants an operation can register.

An operation holds one ordered list of these.  The engine decides when each
kind fires (see ``recordsim.engine``); registration order only matters between
callbacks of the same kind.

Signatures::

    PerRecordSave(fn(record_id, Result[Record]))
    PerRecordDelete(fn(record_id, Result[None]))
    SaveProgress(fn(record, progress))
    ModifyResult(fn(Result[None]))
    PerRecordFetched(fn(record_id, Result[Record]))
    FetchProgress(fn(record_id, progress))
    FetchResult(fn(Result[None]))
    RecordMatched(fn(record_id, Result[Record]))
    QueryResult(fn(Result[cursor]))        # cursor is always None
    Completion(fn())
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class Callback:
    """Base for every callback variant."""

    fn: Callable[..., Any]

    @property
    def kind(self) -> str:
        return type(self).__name__


# ── Modify ───────────────────────────────────────────────────────────


class PerRecordSave(Callback):
    """Fires once per record to save."""


class PerRecordDelete(Callback):
    """Fires once per record id to delete."""


class SaveProgress(Callback):
    """Fires after each save; progress is 1.0 unless the batch has item errors."""


class ModifyResult(Callback):
    """Fires once with the transaction outcome."""


# ── Fetch ────────────────────────────────────────────────────────────


class PerRecordFetched(Callback):
    """Fires once per requested id that exists in the store."""


class FetchProgress(Callback):
    """Fires after each fetched record."""


class FetchResult(Callback):
    """Fires once with the fetch outcome."""


# ── Query ────────────────────────────────────────────────────────────


class RecordMatched(Callback):
    """Fires once per matching record within the results limit."""


class QueryResult(Callback):
    """Fires once with the query outcome."""


# ── Any operation ────────────────────────────────────────────────────


class Completion(Callback):
    """Fires last, after every other callback of the operation."""


MODIFY_CALLBACKS: tuple[type[Callback], ...] = (PerRecordSave, PerRecordDelete, SaveProgress, ModifyResult)
FETCH_CALLBACKS: tuple[type[Callback], ...] = (PerRecordFetched, FetchProgress, FetchResult)
QUERY_CALLBACKS: tuple[type[Callback], ...] = (RecordMatched, QueryResult)
