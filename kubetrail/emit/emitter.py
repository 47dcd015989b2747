"""Event record output.

Each ``emit`` call writes one JSON object on its own line and flushes it:

    {"eventType": "Add", "group": "", "version": "v1", "kind": "pods",
     "obj": {...}, "event": "Event", "level": "info", "ts": "..."}

The emitter owns a dedicated structlog pipeline so that record format does
not depend on how diagnostics are configured.
"""

from __future__ import annotations

import sys
from typing import Any, TextIO

import structlog

from kubetrail.models.events import WatchEvent


class EmissionError(Exception):
    """Raised when an event record cannot be written. Fatal to the process."""

    def __init__(self, event: WatchEvent, cause: Exception) -> None:
        super().__init__(f"failed to write {event.kind} event for {event.identity}: {cause}")
        self.event = event
        self.cause = cause


class EventEmitter:
    """Writes one structured record per notable event, in call order."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._log: Any = structlog.wrap_logger(
            structlog.PrintLogger(file=self._stream),
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.BoundLogger,
            context_class=dict,
        )

    def emit(self, event: WatchEvent) -> None:
        """Write *event* to the output stream.

        Raises:
            EmissionError: the stream rejected the write.
        """
        write = getattr(self._log, event.severity.value)
        try:
            write(
                "Event",
                eventType=event.kind.value,
                group=event.identity.group,
                version=event.identity.version,
                kind=event.identity.resource,
                obj=event.obj,
            )
        except (OSError, ValueError) as exc:
            raise EmissionError(event, exc) from exc
