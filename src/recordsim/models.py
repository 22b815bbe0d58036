"""Pydantic data models for recordsim.

Records, identifiers, scopes, and the small predicate vocabulary the
simulated query engine understands (match-everything and single-field
equality).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Generic, Iterable, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from recordsim.exceptions import RecordStoreError

T = TypeVar("T")

# Pseudo-keys a predicate may compare against instead of the field map.
RECORD_TYPE_KEY = "recordType"
RECORD_ID_KEY = "recordID"

# ── Scope ────────────────────────────────────────────────────────────


class Scope(str, Enum):
    """Storage partition of a container's databases."""

    PUBLIC = "public"
    PRIVATE = "private"
    SHARED = "shared"


# ── Records ──────────────────────────────────────────────────────────


class RecordID(BaseModel):
    """Opaque record identifier; equal when the record names are equal."""

    model_config = ConfigDict(frozen=True)

    record_name: str = Field(default_factory=lambda: str(uuid.uuid4()))

    def __str__(self) -> str:
        return self.record_name


class Record(BaseModel):
    """A typed field map identified uniquely within one scope."""

    record_type: str
    record_id: RecordID = Field(default_factory=RecordID)
    data: dict[str, Any] = Field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def keys(self) -> list[str]:
        return list(self.data)

    def project(self, desired_keys: Optional[Iterable[str]]) -> Record:
        """Return a copy restricted to ``desired_keys``.

        ``None`` means every field.  Keys the record does not hold are
        ignored.  The receiver is never modified.
        """
        if desired_keys is None:
            return self.model_copy(deep=True)
        wanted = set(desired_keys)
        projected = self.model_copy(deep=True)
        projected.data = {k: v for k, v in projected.data.items() if k in wanted}
        return projected


# ── Predicates / queries ─────────────────────────────────────────────


class MatchAll(BaseModel):
    """Predicate accepting every record."""

    kind: Literal["all"] = "all"

    def evaluate(self, record: Record) -> bool:
        return True


class FieldEquals(BaseModel):
    """Predicate accepting records whose ``key`` equals ``value``.

    ``recordType`` and ``recordID`` compare against the record's type tag
    and identifier string.
    """

    kind: Literal["equals"] = "equals"
    key: str
    value: Any

    def evaluate(self, record: Record) -> bool:
        if self.key == RECORD_TYPE_KEY:
            return record.record_type == self.value
        if self.key == RECORD_ID_KEY:
            target = self.value.record_name if isinstance(self.value, RecordID) else self.value
            return record.record_id.record_name == target
        if self.key not in record.data:
            return False
        return record.data[self.key] == self.value


Predicate = Annotated[Union[MatchAll, FieldEquals], Field(discriminator="kind")]


class Query(BaseModel):
    """Record type plus predicate; both must accept a record for it to match."""

    record_type: str
    predicate: Predicate = Field(default_factory=MatchAll)

    def matches(self, record: Record) -> bool:
        return record.record_type == self.record_type and self.predicate.evaluate(record)


# ── Callback results ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or failure error handed to a callback."""

    value: Optional[T] = None
    error: Optional[RecordStoreError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: RecordStoreError) -> Result[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def get(self) -> Optional[T]:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value
