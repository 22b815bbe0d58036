"""Simulated container: scoped databases plus simulated account state."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable, Optional

from recordsim import registry
from recordsim.core.config import get_settings
from recordsim.database import MockDatabase
from recordsim.engine import get_engine
from recordsim.exceptions import (
    AccountStatus,
    AccountStatusError,
    ErrorCode,
    RecordStoreError,
    TransactionError,
)
from recordsim.models import Record, RecordID, Scope
from recordsim.operations import (
    DatabaseOperation,
    FetchRecordsOperation,
    ModifyRecordsOperation,
    QueryOperation,
)
from recordsim.protocols import StoreCapabilities
from recordsim.state import get_state

log = logging.getLogger(__name__)

AccountStatusCallback = Callable[[AccountStatus, Optional[RecordStoreError]], Any]
UserRecordCallback = Callable[[Optional[RecordID], Optional[RecordStoreError]], Any]


class MockContainer:
    """Drop-in container for tests.

    Instances are independent objects, but the databases they hand out are
    shared per scope across every container in the process.  ``account_status``
    and ``user_record`` are process-wide as well and are cleared by
    ``reset_container()``.
    """

    def __init__(self, identifier: str | None = None) -> None:
        self.identifier = identifier or get_settings().default_container_identifier
        self._overrides: dict[Scope, MockDatabase] = {}

    @classmethod
    def default(cls) -> MockContainer:
        return cls()

    @classmethod
    def reset_container(cls) -> None:
        """Clear all scopes' records and every injected fault or account override."""
        registry.reset()

    @property
    def capabilities(self) -> StoreCapabilities:
        return SIMULATED_STORE

    def __repr__(self) -> str:
        return f"<MockContainer {self.identifier!r}>"

    # ── Databases ───────────────────────────────────────────────────

    def database(self, scope: Scope) -> MockDatabase:
        override = self._overrides.get(scope)
        return override if override is not None else registry.shared_database(scope)

    def set_database(self, scope: Scope, database: MockDatabase) -> None:
        """Point this container's ``scope`` handle at ``database`` (this container only)."""
        if database.scope != scope:
            raise ValueError(f"Cannot use a {database.scope.value} database as the {scope.value} database")
        self._overrides[scope] = database

    @property
    def public_database(self) -> MockDatabase:
        return self.database(Scope.PUBLIC)

    @public_database.setter
    def public_database(self, database: MockDatabase) -> None:
        self.set_database(Scope.PUBLIC, database)

    @property
    def private_database(self) -> MockDatabase:
        return self.database(Scope.PRIVATE)

    @private_database.setter
    def private_database(self, database: MockDatabase) -> None:
        self.set_database(Scope.PRIVATE, database)

    @property
    def shared_database(self) -> MockDatabase:
        return self.database(Scope.SHARED)

    @shared_database.setter
    def shared_database(self, database: MockDatabase) -> None:
        self.set_database(Scope.SHARED, database)

    # ── Simulated account ───────────────────────────────────────────

    @property
    def account_status(self) -> Optional[AccountStatus]:
        return get_state().account_status

    @account_status.setter
    def account_status(self, status: Optional[AccountStatus]) -> None:
        get_state().account_status = status

    @property
    def user_record(self) -> Optional[Record]:
        return get_state().user_record

    @user_record.setter
    def user_record(self, record: Optional[Record]) -> None:
        get_state().user_record = record

    def request_account_status(self, callback: AccountStatusCallback) -> Future[Any]:
        """Report ``(status, error)``; error is None only for ``AVAILABLE``.

        An unset status reports ``COULD_NOT_DETERMINE`` with a matching error.
        """
        status = self.account_status
        if status is None:
            status = AccountStatus.COULD_NOT_DETERMINE
        error = None if status is AccountStatus.AVAILABLE else AccountStatusError(status)
        return get_engine().call_soon(callback, status, error)

    def fetch_user_record_id(self, callback: UserRecordCallback) -> Future[Any]:
        """Report ``(record_id, error)`` for the simulated signed-in user.

        Fails with ``AccountStatusError`` unless the status is ``AVAILABLE``
        (``COULD_NOT_DETERMINE`` when unset), then with ``NOT_AUTHENTICATED``
        when no user record has been set.
        """
        status = self.account_status
        record = self.user_record
        if status is not AccountStatus.AVAILABLE:
            status = status if status is not None else AccountStatus.COULD_NOT_DETERMINE
            return get_engine().call_soon(callback, None, AccountStatusError(status))
        if record is None:
            log.debug("No user record set; reporting not authenticated")
            return get_engine().call_soon(callback, None, TransactionError(ErrorCode.NOT_AUTHENTICATED))
        return get_engine().call_soon(callback, record.record_id, None)


SIMULATED_STORE = StoreCapabilities(
    name="simulated",
    container_type=MockContainer,
    database_type=MockDatabase,
    operation_type=DatabaseOperation,
    modify_operation=ModifyRecordsOperation,
    fetch_operation=FetchRecordsOperation,
    query_operation=QueryOperation,
)
