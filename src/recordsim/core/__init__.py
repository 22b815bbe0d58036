"""Configuration and logging setup."""

from __future__ import annotations

from recordsim.core.config import SimulatorSettings, get_settings, reset_settings
from recordsim.core.logging_config import setup_logging

__all__ = ["SimulatorSettings", "get_settings", "reset_settings", "setup_logging"]
