"""Watch event data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from kubetrail.models.resources import ResourceIdentity


class EventKind(StrEnum):
    """Kind of a notable change to a watched object."""

    ADD = "Add"
    UPDATE = "Update"
    DELETE = "Delete"


class Severity(StrEnum):
    """Record severity level."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class WatchEvent:
    """One notable event, created per callback and discarded after emission.

    ``obj`` is the filtered snapshot; it never shares nodes with the object
    delivered by the watch layer.
    """

    kind: EventKind
    identity: ResourceIdentity
    obj: dict[str, Any]
    severity: Severity = Severity.INFO
