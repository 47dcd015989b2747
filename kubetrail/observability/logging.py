"""Structured diagnostics for kubetrail using structlog.

Diagnostics are JSON lines on stderr, each tagged with ``service`` and
``pid`` so they can be told apart from the event stream on stdout when both
are collected together. Event records are not routed through this pipeline;
see ``kubetrail.emit.EventEmitter``.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from kubetrail import __version__

SERVICE_NAME = "kubetrail"


def _add_service(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("pid", os.getpid())
    return event_dict


def setup_logging(level: str = "debug") -> None:
    """Configure the global structlog pipeline; unknown *level* names mean debug."""
    log_level = getattr(logging, level.upper(), logging.DEBUG)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_service,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(version=__version__)


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
