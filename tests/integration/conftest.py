"""Shared fixtures for kubetrail integration tests.

Provides an in-memory ``WatchSource`` and an emitter writing to a StringIO so
integration tests can drive informers, watchers and the orchestrator end to
end without touching a real cluster.
"""

from __future__ import annotations

import asyncio
import copy
import io
import json
from collections import Counter
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
import structlog

from kubetrail.collector.informer import Informer
from kubetrail.collector.watcher import ResourceWatcher
from kubetrail.emit import EventEmitter
from kubetrail.models.resources import FilterSpec, ResourceIdentity

PODS = ResourceIdentity(group="", version="v1", resource="pods")
DEPLOYMENTS = ResourceIdentity(group="apps", version="v1", resource="deployments")

# ---------------------------------------------------------------------------
# Object factories
# ---------------------------------------------------------------------------


def make_pod(
    name: str = "web-0",
    namespace: str = "default",
    resource_version: str = "1",
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Create a Pod object with populated managedFields."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "resourceVersion": resource_version,
            "labels": {"app": "web"},
            "annotations": annotations or {},
            "managedFields": [
                {"manager": "kubectl-client-side-apply", "operation": "Update", "apiVersion": "v1"},
            ],
        },
        "spec": {"containers": [{"name": "web", "image": "nginx:1.25"}]},
        "status": {"phase": "Running"},
    }


def make_deployment(
    name: str = "web",
    namespace: str = "default",
    replicas: int = 3,
    resource_version: str = "1",
) -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": resource_version},
        "spec": {"replicas": replicas, "template": {"spec": {"containers": [{"name": "web"}]}}},
        "status": {"readyReplicas": replicas},
    }


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


class FakeWatchSource:
    """In-memory ``WatchSource``.

    ``objects`` is what ``list`` returns per identity. Watch events are fed
    with ``push``; pushing ``None`` ends the current stream and pushing an
    exception raises it from the stream. Identities in ``hang`` never finish
    listing, and identities in ``fail`` raise from ``list``.
    """

    def __init__(self, objects: dict[ResourceIdentity, list[dict[str, Any]]] | None = None) -> None:
        self.objects: dict[ResourceIdentity, list[dict[str, Any]]] = objects or {}
        self.resource_version = "100"
        self.hang: set[ResourceIdentity] = set()
        self.fail: dict[ResourceIdentity, Exception] = {}
        self.list_calls: Counter[ResourceIdentity] = Counter()
        self.watch_versions: list[tuple[ResourceIdentity, str]] = []
        self._queues: dict[ResourceIdentity, asyncio.Queue[Any]] = {}

    def queue(self, identity: ResourceIdentity) -> asyncio.Queue[Any]:
        if identity not in self._queues:
            self._queues[identity] = asyncio.Queue()
        return self._queues[identity]

    def push(self, identity: ResourceIdentity, event_type: str | None, obj: Any = None) -> None:
        if event_type is None:
            self.queue(identity).put_nowait(None)
        else:
            self.queue(identity).put_nowait({"type": event_type, "object": copy.deepcopy(obj)})

    def push_raise(self, identity: ResourceIdentity, exc: Exception) -> None:
        self.queue(identity).put_nowait(exc)

    async def list(self, identity: ResourceIdentity) -> tuple[list[dict[str, Any]], str]:
        self.list_calls[identity] += 1
        if identity in self.fail:
            raise self.fail[identity]
        if identity in self.hang:
            await asyncio.Event().wait()
        return [copy.deepcopy(obj) for obj in self.objects.get(identity, [])], self.resource_version

    async def watch(
        self,
        identity: ResourceIdentity,
        resource_version: str,
        timeout_seconds: int = 300,
    ) -> AsyncIterator[dict[str, Any]]:
        self.watch_versions.append((identity, resource_version))
        queue = self.queue(identity)
        while True:
            item = await queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item


def read_records(stream: io.StringIO) -> list[dict[str, Any]]:
    """Parse every JSON line written so far."""
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll *predicate* until it holds, failing the test after *timeout* seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def emitter(stream: io.StringIO) -> EventEmitter:
    return EventEmitter(stream)


@pytest.fixture
def source() -> FakeWatchSource:
    return FakeWatchSource()


@pytest.fixture
def make_watcher(emitter: EventEmitter) -> Callable[..., ResourceWatcher]:
    def _make(identity: ResourceIdentity = PODS, spec: FilterSpec | None = None) -> ResourceWatcher:
        return ResourceWatcher(
            identity=identity,
            spec=spec or FilterSpec(),
            emitter=emitter,
            logger=structlog.get_logger(component="test"),
        )

    return _make


@pytest.fixture
def make_informer(
    source: FakeWatchSource,
    make_watcher: Callable[..., ResourceWatcher],
) -> Callable[..., Informer]:
    def _make(
        identity: ResourceIdentity = PODS,
        spec: FilterSpec | None = None,
        resync_period: float = 3600.0,
    ) -> Informer:
        return Informer(source, make_watcher(identity, spec), resync_period=resync_period)

    return _make
