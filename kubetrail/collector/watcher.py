"""ResourceWatcher: per-kind add/update/delete handling.

Every callback first applies the namespace filter. Adds and deletes of
in-scope objects are always emitted; updates are emitted only when the
filtered snapshot changed, which suppresses resync redeliveries.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from kubetrail.emit import EventEmitter
from kubetrail.filters import in_scope, is_notable_change, project
from kubetrail.models.events import EventKind, WatchEvent
from kubetrail.models.resources import FilterSpec, ResourceIdentity


class ResourceWatcher:
    """Binds one resource kind's identity and filter spec to event emission."""

    def __init__(
        self,
        identity: ResourceIdentity,
        spec: FilterSpec,
        emitter: EventEmitter,
        logger: structlog.stdlib.BoundLogger,
    ) -> None:
        self.identity = identity
        self.spec = spec
        self._emitter = emitter
        self._log = logger.bind(
            group=identity.group,
            version=identity.version,
            kind=identity.resource,
        )
        self._synced: Callable[[], bool] | None = None

    def bind_synced(self, synced: Callable[[], bool]) -> None:
        """Attach the watch layer's synced-state query."""
        self._synced = synced

    def has_synced(self) -> bool:
        return self._synced is not None and self._synced()

    def snapshot(self, obj: Any) -> dict[str, Any]:
        return project(obj, self.spec.include_paths, self.spec.exclude_paths)

    def on_add(self, obj: Any) -> None:
        if in_scope(obj, self.spec.namespaces):
            self._emit(EventKind.ADD, obj)

    def on_update(self, old: Any, new: Any) -> None:
        # Scope is judged on the current state only; leaving scope emits nothing.
        if not in_scope(new, self.spec.namespaces):
            return
        if not is_notable_change(old, new, self.spec):
            self._log.debug("update suppressed", name=_object_name(new))
            return
        self._emit(EventKind.UPDATE, new)

    def on_delete(self, obj: Any) -> None:
        if in_scope(obj, self.spec.namespaces):
            self._emit(EventKind.DELETE, obj)

    def _emit(self, kind: EventKind, obj: Any) -> None:
        self._emitter.emit(WatchEvent(kind=kind, identity=self.identity, obj=self.snapshot(obj)))


def _object_name(obj: Any) -> str:
    metadata = obj.get("metadata") if isinstance(obj, dict) else None
    if not isinstance(metadata, dict):
        return ""
    return str(metadata.get("name", ""))
