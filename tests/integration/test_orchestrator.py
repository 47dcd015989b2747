"""Integration tests for the WatchOrchestrator state machine.

Covers aggregate sync across several resource kinds, sync failure on
cancellation or informer failure, shared shutdown, and fatal propagation of
errors raised while running.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable

import pytest

from kubetrail.collector.informer import Informer
from kubetrail.emit import EmissionError
from kubetrail.orchestrator import OrchestratorState, SyncError, WatchOrchestrator

from .conftest import DEPLOYMENTS, PODS, FakeWatchSource, eventually, make_deployment, make_pod, read_records

pytestmark = pytest.mark.integration


def _orchestrator(informers: list[Informer], shutdown: asyncio.Event | None = None) -> WatchOrchestrator:
    return WatchOrchestrator(informers, shutdown or asyncio.Event(), sync_poll_interval=0.01)


class TestSync:
    async def test_aggregate_sync_waits_for_every_kind(
        self, source: FakeWatchSource, make_informer: Callable[..., Informer]
    ) -> None:
        source.hang.add(DEPLOYMENTS)
        pods, deployments = make_informer(PODS), make_informer(DEPLOYMENTS)
        orchestrator = _orchestrator([pods, deployments])
        orchestrator.start()
        sync = asyncio.create_task(orchestrator.wait_for_sync())
        try:
            await eventually(pods.has_synced)
            await asyncio.sleep(0.05)
            assert not orchestrator.has_synced()
            assert not sync.done()
            assert orchestrator.state is OrchestratorState.SYNCING
            assert orchestrator.pending() == ["apps/v1/deployments"]
        finally:
            orchestrator.shutdown.set()
            assert await asyncio.wait_for(sync, timeout=2.0) is False
            await orchestrator.stop()

        assert orchestrator.state is OrchestratorState.STOPPED

    async def test_sync_succeeds_when_all_kinds_listed(
        self, source: FakeWatchSource, make_informer: Callable[..., Informer]
    ) -> None:
        source.objects[PODS] = [make_pod()]
        orchestrator = _orchestrator([make_informer(PODS), make_informer(DEPLOYMENTS)])
        orchestrator.start()
        try:
            assert await asyncio.wait_for(orchestrator.wait_for_sync(), timeout=2.0) is True
            assert orchestrator.state is OrchestratorState.RUNNING
            assert orchestrator.has_synced()
        finally:
            await orchestrator.stop()

    async def test_cancellation_before_sync_raises_sync_error(
        self, source: FakeWatchSource, make_informer: Callable[..., Informer]
    ) -> None:
        source.hang.add(PODS)
        shutdown = asyncio.Event()
        orchestrator = _orchestrator([make_informer(PODS)], shutdown)
        run = asyncio.create_task(orchestrator.run())
        await asyncio.sleep(0.05)
        shutdown.set()

        with pytest.raises(SyncError) as excinfo:
            await asyncio.wait_for(run, timeout=2.0)
        assert excinfo.value.pending == ["v1/pods"]
        assert not orchestrator.has_synced()
        assert orchestrator.state is OrchestratorState.STOPPED

    async def test_informer_failure_before_sync_raises_sync_error(
        self, source: FakeWatchSource, make_informer: Callable[..., Informer]
    ) -> None:
        source.hang.add(DEPLOYMENTS)
        source.fail[PODS] = RuntimeError("forbidden")
        orchestrator = _orchestrator([make_informer(PODS), make_informer(DEPLOYMENTS)])

        with pytest.raises(SyncError) as excinfo:
            await asyncio.wait_for(orchestrator.run(), timeout=2.0)
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert orchestrator.shutdown.is_set()

    async def test_no_resources_syncs_immediately(self) -> None:
        orchestrator = _orchestrator([])
        orchestrator.start()
        assert await orchestrator.wait_for_sync() is True
        await orchestrator.stop()


class TestRunning:
    async def test_run_until_shutdown(
        self, source: FakeWatchSource, make_informer: Callable[..., Informer], stream: io.StringIO
    ) -> None:
        source.objects[PODS] = [make_pod()]
        shutdown = asyncio.Event()
        orchestrator = _orchestrator([make_informer(PODS), make_informer(DEPLOYMENTS)], shutdown)
        run = asyncio.create_task(orchestrator.run())

        await eventually(lambda: orchestrator.state is OrchestratorState.RUNNING)
        source.push(DEPLOYMENTS, "ADDED", make_deployment())
        await eventually(lambda: len(read_records(stream)) == 2)
        shutdown.set()
        await asyncio.wait_for(run, timeout=2.0)

        assert orchestrator.state is OrchestratorState.STOPPED
        assert sorted(r["kind"] for r in read_records(stream)) == ["deployments", "pods"]

    async def test_emission_failure_while_running_is_raised(
        self, source: FakeWatchSource, make_informer: Callable[..., Informer], stream: io.StringIO
    ) -> None:
        orchestrator = _orchestrator([make_informer(PODS), make_informer(DEPLOYMENTS)])
        run = asyncio.create_task(orchestrator.run())
        await eventually(lambda: orchestrator.state is OrchestratorState.RUNNING)

        stream.close()
        source.push(PODS, "ADDED", make_pod())

        with pytest.raises(EmissionError):
            await asyncio.wait_for(run, timeout=2.0)
        assert orchestrator.state is OrchestratorState.STOPPED
        assert orchestrator.shutdown.is_set()

    async def test_stop_is_idempotent(self, make_informer: Callable[..., Informer]) -> None:
        orchestrator = _orchestrator([make_informer(PODS)])
        orchestrator.start()
        await orchestrator.stop()
        await orchestrator.stop()
        assert orchestrator.state is OrchestratorState.STOPPED
