"""Store abstraction protocols: the contract the real store and the simulation share.

Client code is written once against ``IContainer`` / ``IDatabase`` /
``IDatabaseOperation``.  Type parity between a backend's container, database
and operation classes is carried by one ``StoreCapabilities`` value fixed when
the backend is defined, rather than by three separately matched parameters.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

from recordsim.exceptions import CapabilityMismatchError

if TYPE_CHECKING:
    from recordsim.callbacks import Callback
    from recordsim.exceptions import AccountStatus, RecordStoreError
    from recordsim.models import RecordID, Scope


@runtime_checkable
class IDatabaseOperation(Protocol):
    """Protocol for one submittable unit of work (modify, fetch, query)."""

    def on(self, callback: Callback) -> IDatabaseOperation:
        """Register a typed callback variant. Raises TypeError if the kind is not produced."""
        ...


@runtime_checkable
class IDatabase(Protocol):
    """Protocol for a scoped database handle."""

    @property
    def scope(self) -> Scope:
        """The storage partition this handle reads and writes."""
        ...

    def submit(self, operation: Any) -> Future[None]:
        """Queue ``operation``; outcomes arrive only through its callbacks."""
        ...


@runtime_checkable
class IContainer(Protocol):
    """Protocol for a container handing out scoped databases."""

    @property
    def capabilities(self) -> StoreCapabilities:
        """The capability group binding this container's database and operation types."""
        ...

    def database(self, scope: Scope) -> IDatabase:
        """Return the database handle for ``scope``."""
        ...

    def request_account_status(
        self, callback: Callable[[AccountStatus, Optional[RecordStoreError]], None]
    ) -> None:
        """Report the account status asynchronously."""
        ...

    def fetch_user_record_id(
        self, callback: Callable[[Optional[RecordID], Optional[RecordStoreError]], None]
    ) -> None:
        """Report the signed-in user's record id asynchronously."""
        ...


@dataclass(frozen=True)
class StoreCapabilities:
    """One backend's container, database and operation types, bound together.

    ``modify_operation``, ``fetch_operation`` and ``query_operation`` are the
    concrete operation classes generic code instantiates; each must derive from
    ``operation_type``.
    """

    name: str
    container_type: type
    database_type: type
    operation_type: type
    modify_operation: type
    fetch_operation: type
    query_operation: type

    def __post_init__(self) -> None:
        for attr in ("modify_operation", "fetch_operation", "query_operation"):
            op_cls = getattr(self, attr)
            if not issubclass(op_cls, self.operation_type):
                raise CapabilityMismatchError(
                    f"{self.name}: {attr} {op_cls.__name__} does not derive from "
                    f"{self.operation_type.__name__}"
                )

    def check_container(self, container: object) -> None:
        if not isinstance(container, self.container_type):
            raise CapabilityMismatchError(
                f"{type(container).__name__} is not a {self.name} container "
                f"(expected {self.container_type.__name__})"
            )

    def check_database(self, database: object) -> None:
        if not isinstance(database, self.database_type):
            raise CapabilityMismatchError(
                f"{type(database).__name__} is not a {self.name} database "
                f"(expected {self.database_type.__name__})"
            )

    def check_operation(self, operation: object) -> None:
        if not isinstance(operation, self.operation_type):
            raise CapabilityMismatchError(
                f"{type(operation).__name__} cannot be submitted to a {self.name} database "
                f"(expected {self.operation_type.__name__})"
            )
