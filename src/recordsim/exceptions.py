"""Exception hierarchy for recordsim.

Every failure the simulated store reports is a ``RecordStoreError`` carrying a
``domain`` and an integer ``code`` so callers can branch on codes the same way
they would against the real store.  Errors are delivered through callback
failure branches, never raised from ``submit()``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from recordsim.models import RecordID

TRANSACTION_ERROR_DOMAIN = "RecordStoreErrorDomain"
ACCOUNT_STATUS_DOMAIN = "AccountStatus"


class ErrorCode(IntEnum):
    """Transaction error codes reported by the record store."""

    INTERNAL_ERROR = 1
    PARTIAL_FAILURE = 2
    NETWORK_UNAVAILABLE = 3
    NETWORK_FAILURE = 4
    BAD_CONTAINER = 5
    SERVICE_UNAVAILABLE = 6
    REQUEST_RATE_LIMITED = 7
    MISSING_ENTITLEMENT = 8
    NOT_AUTHENTICATED = 9
    PERMISSION_FAILURE = 10
    UNKNOWN_ITEM = 11
    INVALID_ARGUMENTS = 12
    SERVER_RECORD_CHANGED = 14
    SERVER_REJECTED_REQUEST = 15
    CONSTRAINT_VIOLATION = 19
    OPERATION_CANCELLED = 20
    BATCH_REQUEST_FAILED = 22
    ZONE_BUSY = 23
    BAD_DATABASE = 24
    QUOTA_EXCEEDED = 25
    ZONE_NOT_FOUND = 26
    LIMIT_EXCEEDED = 27
    USER_DELETED_ZONE = 28
    SERVER_RESPONSE_LOST = 34
    ACCOUNT_TEMPORARILY_UNAVAILABLE = 36


class AccountStatus(IntEnum):
    """Availability of the simulated user account."""

    COULD_NOT_DETERMINE = 0
    AVAILABLE = 1
    RESTRICTED = 2
    NO_ACCOUNT = 3
    TEMPORARILY_UNAVAILABLE = 4


ACCOUNT_STATUS_MESSAGES: dict[AccountStatus, str] = {
    AccountStatus.COULD_NOT_DETERMINE: "Unable to determine account status.",
    AccountStatus.AVAILABLE: "",
    AccountStatus.RESTRICTED: "Account is restricted.",
    AccountStatus.NO_ACCOUNT: "No account could be found.",
    AccountStatus.TEMPORARILY_UNAVAILABLE: "Account is temporarily unavailable. Please try again later.",
}


class RecordStoreError(Exception):
    """Base exception for all recordsim errors."""

    domain: str = TRANSACTION_ERROR_DOMAIN
    code: int = 0

    @property
    def description(self) -> str:
        return str(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordStoreError):
            return NotImplemented
        return (self.domain, self.code) == (other.domain, other.code)

    def __hash__(self) -> int:
        return hash((self.domain, self.code))


class TransactionError(RecordStoreError):
    """Failure describing a whole operation's outcome, parameterized by a code."""

    def __init__(self, code: ErrorCode | int, message: str = "") -> None:
        self.code = int(code)
        super().__init__(message or f"The operation couldn't be completed. ({self.domain} error {self.code}.)")

    @property
    def error_code(self) -> ErrorCode | int:
        try:
            return ErrorCode(self.code)
        except ValueError:
            return self.code


class PartialFailureError(TransactionError):
    """Some items in a batch failed while the rest succeeded or were skipped.

    ``errors_by_item`` maps each failing ``RecordID`` to that item's own
    error.  An item error is never itself a partial failure.
    """

    def __init__(self, errors_by_item: Mapping[RecordID, RecordStoreError]) -> None:
        for record_id, error in errors_by_item.items():
            if isinstance(error, PartialFailureError):
                raise ValueError(f"Item error for {record_id} cannot itself be a partial failure")
        self.errors_by_item: dict[RecordID, RecordStoreError] = dict(errors_by_item)
        super().__init__(ErrorCode.PARTIAL_FAILURE)

    def get_partial_errors(self) -> dict[str, RecordStoreError]:
        """Return the per-item errors keyed by record name."""
        return {rid.record_name: err for rid, err in self.errors_by_item.items()}


class AccountStatusError(RecordStoreError):
    """Raised for any account status other than ``AVAILABLE``."""

    domain = ACCOUNT_STATUS_DOMAIN

    def __init__(self, status: AccountStatus) -> None:
        self.status = status
        self.code = int(status)
        super().__init__(ACCOUNT_STATUS_MESSAGES.get(status) or f"Account status {status.name}")


class OperationError(RecordStoreError):
    """Base for errors about the operation itself rather than its records."""

    domain = "OperationError"

    def __init__(self, error_description: str, failure_reason: str, recovery_suggestion: str) -> None:
        self.error_description = error_description
        self.failure_reason = failure_reason
        self.recovery_suggestion = recovery_suggestion
        super().__init__(error_description)


class OperationNotSupportedError(OperationError):
    """The engine received an operation type it does not model."""

    code = 1

    def __init__(self, operation: Any) -> None:
        name = operation.__name__ if isinstance(operation, type) else type(operation).__name__
        super().__init__(
            "An invalid or unsupported database operation was performed.",
            f"{name} is not a supported operation.",
            "See the DatabaseOperation subclasses for valid operations.",
        )


class OperationNotImplementedError(OperationError):
    """A legacy single-record call that is not backed by the batch engine."""

    code = 2

    def __init__(self, operation_name: str, recovery_message: str) -> None:
        self.operation_name = operation_name
        super().__init__(
            f"Operation '{operation_name}' is not implemented.",
            f"{operation_name} is not implemented.",
            recovery_message,
        )


class CapabilityMismatchError(TypeError):
    """A database or operation was paired with a foreign capability group."""


__all__ = [
    "ErrorCode",
    "AccountStatus",
    "ACCOUNT_STATUS_MESSAGES",
    "RecordStoreError",
    "TransactionError",
    "PartialFailureError",
    "AccountStatusError",
    "OperationError",
    "OperationNotSupportedError",
    "OperationNotImplementedError",
    "CapabilityMismatchError",
]
