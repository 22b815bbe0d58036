"""Process-wide simulator overrides: global faults, account status, user record.

Created lazily on first access from ``SimulatorSettings`` and discarded by
``reset_state()``, so the next access starts from configuration again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from recordsim.core.config import get_settings
from recordsim.exceptions import AccountStatus, TransactionError
from recordsim.models import Record
from recordsim.store import FaultInjection

log = logging.getLogger(__name__)


@dataclass
class SimulatorState:
    """Overrides shared by every container, database and operation in the process."""

    global_faults: FaultInjection = field(default_factory=FaultInjection)
    account_status: Optional[AccountStatus] = None
    user_record: Optional[Record] = None


# ── Module-level state ──────────────────────────────────────────────

_state: SimulatorState | None = None


def get_state() -> SimulatorState:
    """Return the process-wide state, building it from settings on first use."""
    global _state
    if _state is None:
        _state = _initial_state()
    return _state


def reset_state() -> None:
    """Drop every override; the next ``get_state()`` re-reads configuration."""
    global _state
    _state = None


def _initial_state() -> SimulatorState:
    settings = get_settings()
    state = SimulatorState()
    if settings.injected_error_code is not None:
        state.global_faults.transaction_error = TransactionError(settings.injected_error_code)
        log.info("Injecting transaction error %s into every operation", settings.injected_error_code)
    return state
