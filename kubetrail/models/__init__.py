"""Core data structures for kubetrail."""

from kubetrail.models.config import (
    FilterConfig,
    KubeTrailConfig,
    LogConfig,
    ResourceConfig,
    WatchConfig,
)
from kubetrail.models.events import EventKind, Severity, WatchEvent
from kubetrail.models.resources import FilterSpec, ResourceIdentity

__all__ = [
    "EventKind",
    "FilterConfig",
    "FilterSpec",
    "KubeTrailConfig",
    "LogConfig",
    "ResourceConfig",
    "ResourceIdentity",
    "Severity",
    "WatchConfig",
    "WatchEvent",
]
