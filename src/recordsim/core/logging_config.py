"""Structured logging configuration using structlog.

Records the simulation emits are rendered through one structlog
``ProcessorFormatter``: JSON when stderr is not a terminal, colored console
output otherwise.  Engine log lines carry ``operation`` and ``scope`` context
bound by ``recordsim.engine``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from recordsim.core.config import SimulatorSettings, get_settings


def setup_logging(settings: Optional[SimulatorSettings] = None) -> None:
    """Configure structured logging for the root logger and ``recordsim``.

    Uses the process-wide settings when ``settings`` is omitted.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if sys.stderr.isatty():
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("recordsim").setLevel(level)
