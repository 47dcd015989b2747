"""Informer: list, watch, local store and periodic resync for one resource kind.

The informer owns a store of the latest object per ``namespace/name`` and
feeds a ``ResourceWatcher``:

* the initial list delivers ``on_add`` for every object, then marks the
  informer synced (the flag never goes back to False);
* watch events deliver ``on_add`` / ``on_update(old, new)`` / ``on_delete``;
* every ``resync_period`` seconds each stored object is redelivered as
  ``on_update(obj, obj)``;
* an expired resourceVersion or an ERROR event triggers a re-list, which
  reconciles the store (adds, updates, and deletes for vanished objects).

Callbacks are synchronous, so deliveries for one kind never interleave.
Exceptions raised by callbacks end ``run``.
"""

from __future__ import annotations

import asyncio
from typing import Any

from kubetrail.collector.source import (
    DEFAULT_WATCH_TIMEOUT_SECONDS,
    RelistRequired,
    ResourceExpired,
    WatchSource,
)
from kubetrail.collector.watcher import ResourceWatcher
from kubetrail.observability.logging import get_logger

_log = get_logger("collector.informer")

# Pause before re-opening a watch stream the server closed.
WATCH_REOPEN_DELAY_SECONDS = 0.1


def object_key(obj: dict[str, Any]) -> str:
    """Return ``namespace/name``, or ``name`` for cluster-scoped objects."""
    metadata = obj.get("metadata") or {}
    namespace = metadata.get("namespace") or ""
    name = metadata.get("name") or ""
    return f"{namespace}/{name}" if namespace else str(name)


def _resource_version(obj: dict[str, Any]) -> str:
    return str((obj.get("metadata") or {}).get("resourceVersion") or "")


class Informer:
    """Drives one ``ResourceWatcher`` from a ``WatchSource``."""

    def __init__(
        self,
        source: WatchSource,
        watcher: ResourceWatcher,
        resync_period: float = 1.0,
        watch_timeout: int = DEFAULT_WATCH_TIMEOUT_SECONDS,
        reopen_delay: float = WATCH_REOPEN_DELAY_SECONDS,
    ) -> None:
        self._source = source
        self.watcher = watcher
        self._resync_period = resync_period
        self._watch_timeout = watch_timeout
        self._reopen_delay = reopen_delay
        self._store: dict[str, dict[str, Any]] = {}
        self._synced = False
        self._log = _log.bind(resource=str(watcher.identity))
        watcher.bind_synced(self.has_synced)

    def has_synced(self) -> bool:
        return self._synced

    def __len__(self) -> int:
        return len(self._store)

    async def run(self, shutdown: asyncio.Event) -> None:
        """List, then watch and resync until *shutdown* is set.

        Raises whatever a callback raises, after cancelling the sibling loop.
        """
        tasks = [
            asyncio.create_task(self._watch_loop(shutdown), name=f"watch-{self.watcher.identity}"),
            asyncio.create_task(self._resync_loop(shutdown), name=f"resync-{self.watcher.identity}"),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                task.result()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # List / watch
    # ------------------------------------------------------------------

    async def _watch_loop(self, shutdown: asyncio.Event) -> None:
        resource_version = await self.relist()
        while not shutdown.is_set():
            try:
                resource_version = await self._watch_once(resource_version)
            except RelistRequired as exc:
                self._log.info("watch cannot resume; relisting", error=str(exc))
                resource_version = await self.relist()
                continue
            # stream closed by the server
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=self._reopen_delay)
            except TimeoutError:
                pass

    async def relist(self) -> str:
        """Replace the store with a fresh list and deliver the differences."""
        items, resource_version = await self._source.list(self.watcher.identity)
        listed = {object_key(obj): obj for obj in items}
        for key in [key for key in self._store if key not in listed]:
            self.watcher.on_delete(self._store.pop(key))
        for key, obj in listed.items():
            self._upsert(key, obj)
        if not self._synced:
            self._synced = True
            self._log.debug("initial list received", objects=len(self._store))
        return resource_version

    async def _watch_once(self, resource_version: str) -> str:
        """Consume one watch stream; return the last seen resourceVersion."""
        async for event in self._source.watch(
            self.watcher.identity,
            resource_version,
            timeout_seconds=self._watch_timeout,
        ):
            resource_version = self.handle_event(event) or resource_version
        return resource_version

    def handle_event(self, event: dict[str, Any]) -> str:
        """Apply one watch event to the store and deliver it.

        Returns the event's resourceVersion ("" if none).

        Raises:
            RelistRequired: the event is an ERROR; the caller must relist.
        """
        event_type = event.get("type", "")
        obj = event.get("object") or {}
        if event_type == "ERROR":
            message = str(obj.get("message") or obj.get("reason") or "watch error")
            if obj.get("code") == 410:
                raise ResourceExpired(message)
            raise RelistRequired(message)
        if event_type in ("ADDED", "MODIFIED"):
            self._upsert(object_key(obj), obj)
        elif event_type == "DELETED":
            self._store.pop(object_key(obj), None)
            self.watcher.on_delete(obj)
        elif event_type != "BOOKMARK":
            self._log.warning("unknown watch event type", type=event_type)
            return ""
        return _resource_version(obj)

    def _upsert(self, key: str, obj: dict[str, Any]) -> None:
        old = self._store.get(key)
        self._store[key] = obj
        if old is None:
            self.watcher.on_add(obj)
        else:
            self.watcher.on_update(old, obj)

    # ------------------------------------------------------------------
    # Resync
    # ------------------------------------------------------------------

    async def _resync_loop(self, shutdown: asyncio.Event) -> None:
        while not shutdown.is_set():
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=self._resync_period)
            except TimeoutError:
                if self._synced:
                    self.resync()

    def resync(self) -> None:
        """Redeliver every stored object as an unchanged update."""
        for obj in list(self._store.values()):
            self.watcher.on_update(obj, obj)
