"""Tests for structlog setup."""

from __future__ import annotations

import logging

import pytest
import structlog

from recordsim import SimulatorSettings, setup_logging
from recordsim.core.config import reset_settings


@pytest.fixture(autouse=True)
def _restore_root_logger() -> None:  # type: ignore[misc]
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield  # type: ignore[misc]
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("recordsim").setLevel(logging.NOTSET)
    structlog.reset_defaults()


class TestSetupLogging:
    def test_sets_levels(self) -> None:
        setup_logging(SimulatorSettings(log_level="debug"))
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("recordsim").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging(SimulatorSettings(log_level="chatty"))
        assert logging.getLogger("recordsim").level == logging.INFO

    def test_root_uses_structlog_formatter(self) -> None:
        setup_logging(SimulatorSettings())
        (handler,) = logging.getLogger().handlers
        assert isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)

    def test_defaults_to_process_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORDSIM_LOG_LEVEL", "WARNING")
        reset_settings()
        setup_logging()
        assert logging.getLogger("recordsim").level == logging.WARNING
