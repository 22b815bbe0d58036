"""recordsim: deterministic in-memory simulation of a scoped, asynchronous record store.

Typical test setup::

    from recordsim import MockContainer, ModifyRecordsOperation, ModifyResult, Record, Scope

    MockContainer.reset_container()
    db = MockContainer("app").database(Scope.PRIVATE)

    op = ModifyRecordsOperation(records_to_save=[Record(record_type="Message")])
    op.on(ModifyResult(lambda result: print(result.ok)))
    db.submit(op).result(timeout=1)
"""

from __future__ import annotations

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
from recordsim.container import SIMULATED_STORE, MockContainer
from recordsim.core.config import SimulatorSettings, get_settings
from recordsim.core.logging_config import setup_logging
from recordsim.database import MockDatabase
from recordsim.engine import OperationEngine, get_engine, shutdown_engine
from recordsim.exceptions import (
    AccountStatus,
    AccountStatusError,
    CapabilityMismatchError,
    ErrorCode,
    OperationNotImplementedError,
    OperationNotSupportedError,
    PartialFailureError,
    RecordStoreError,
    TransactionError,
)
from recordsim.models import FieldEquals, MatchAll, Query, Record, RecordID, Result, Scope
from recordsim.operations import (
    DatabaseOperation,
    FetchRecordsOperation,
    ModifyRecordsOperation,
    QueryOperation,
)
from recordsim.protocols import IContainer, IDatabase, IDatabaseOperation, StoreCapabilities
from recordsim.store import FaultInjection, ScopedRecordStore

__version__ = "0.1.0"

__all__ = [
    # Abstraction
    "IContainer",
    "IDatabase",
    "IDatabaseOperation",
    "StoreCapabilities",
    "SIMULATED_STORE",
    # Simulation
    "MockContainer",
    "MockDatabase",
    "ScopedRecordStore",
    "FaultInjection",
    "OperationEngine",
    "get_engine",
    "shutdown_engine",
    # Models
    "Record",
    "RecordID",
    "Scope",
    "Query",
    "MatchAll",
    "FieldEquals",
    "Result",
    # Operations
    "DatabaseOperation",
    "ModifyRecordsOperation",
    "FetchRecordsOperation",
    "QueryOperation",
    # Callbacks
    "Callback",
    "PerRecordSave",
    "PerRecordDelete",
    "SaveProgress",
    "ModifyResult",
    "PerRecordFetched",
    "FetchProgress",
    "FetchResult",
    "RecordMatched",
    "QueryResult",
    "Completion",
    # Errors
    "ErrorCode",
    "AccountStatus",
    "RecordStoreError",
    "TransactionError",
    "PartialFailureError",
    "AccountStatusError",
    "OperationNotSupportedError",
    "OperationNotImplementedError",
    "CapabilityMismatchError",
    # Config
    "SimulatorSettings",
    "get_settings",
    "setup_logging",
]
