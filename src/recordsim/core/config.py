"""Environment-driven configuration via Pydantic Settings.

Env vars use the ``RECORDSIM_`` prefix::

    export RECORDSIM_LOG_LEVEL=DEBUG
    export RECORDSIM_INJECTED_ERROR_CODE=4   # every operation fails with NETWORK_FAILURE
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from recordsim.exceptions import ErrorCode


class SimulatorSettings(BaseSettings):
    """Settings for the in-memory record store simulation."""

    model_config = {"env_prefix": "RECORDSIM_"}

    log_level: str = "INFO"
    default_container_identifier: str = "recordsim.default"
    worker_thread_name: str = "recordsim-engine"

    # ── Fault injection ──────────────────────────────────────────────
    injected_error_code: Optional[int] = None
    item_error_code: int = int(ErrorCode.SERVER_REJECTED_REQUEST)

    drain_timeout_seconds: float = Field(default=5.0, gt=0.0)


_settings: SimulatorSettings | None = None


def get_settings() -> SimulatorSettings:
    """Return the process-wide settings, reading the environment on first use."""
    global _settings
    if _settings is None:
        _settings = SimulatorSettings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next ``get_settings()`` re-reads the env (for testing)."""
    global _settings
    _settings = None
