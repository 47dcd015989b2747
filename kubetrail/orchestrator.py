"""Multi-resource watch orchestration.

State machine over all informers:

    starting -> syncing -> running -> shutting_down -> stopped

All informers share one ``asyncio.Event`` as the cancellation token. It is
set exactly once, either by a signal handler or by ``stop()``. Startup is
all-or-nothing: if the aggregate sync does not complete, every informer is
stopped before ``SyncError`` is raised.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from enum import StrEnum

from kubetrail.collector.informer import Informer
from kubetrail.observability.logging import get_logger

_DEFAULT_SYNC_POLL_SECONDS = 0.1


class OrchestratorState(StrEnum):
    """Lifecycle state of the orchestrator."""

    STARTING = "starting"
    SYNCING = "syncing"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class SyncError(Exception):
    """Raised when the initial sync did not complete for every resource kind."""

    def __init__(self, pending: list[str]) -> None:
        super().__init__(f"failed to sync caches (pending: {', '.join(pending) or 'none'})")
        self.pending = pending


class WatchOrchestrator:
    """Starts every informer, waits for the aggregate sync, then runs until cancelled."""

    def __init__(
        self,
        informers: Sequence[Informer],
        shutdown: asyncio.Event,
        sync_poll_interval: float = _DEFAULT_SYNC_POLL_SECONDS,
    ) -> None:
        self._informers = list(informers)
        self.shutdown = shutdown
        self._sync_poll_interval = sync_poll_interval
        self._tasks: list[asyncio.Task[None]] = []
        self.state = OrchestratorState.STARTING
        self._log = get_logger("orchestrator")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Run until the shutdown event is set.

        Raises:
            SyncError: shutdown or an informer failure came before the
                aggregate sync.
            Exception: the exception that ended an informer task while
                running (e.g. ``EmissionError``).
        """
        self.start()
        if not await self.wait_for_sync():
            failure = self._first_failure()
            await self.stop()
            if failure is not None:
                raise SyncError(self.pending()) from failure
            raise SyncError(self.pending())

        await self._wait_running()
        failure = self._first_failure()
        await self.stop()
        if failure is not None:
            raise failure

    def start(self) -> None:
        """Launch one task per informer."""
        self.state = OrchestratorState.STARTING
        for informer in self._informers:
            task = asyncio.create_task(
                informer.run(self.shutdown),
                name=f"informer-{informer.watcher.identity}",
            )
            self._tasks.append(task)
        self._log.info("informers started", count=len(self._tasks))

    def has_synced(self) -> bool:
        """Aggregate sync state: every informer has received its initial list."""
        return all(informer.has_synced() for informer in self._informers)

    def pending(self) -> list[str]:
        return [str(informer.watcher.identity) for informer in self._informers if not informer.has_synced()]

    async def wait_for_sync(self) -> bool:
        """Poll until every informer is synced.

        Returns False if the shutdown event fires or an informer task ends
        first.
        """
        self.state = OrchestratorState.SYNCING
        self._log.info("waiting for cache sync")
        while True:
            if self.shutdown.is_set() or any(task.done() for task in self._tasks):
                self._log.error("failed to sync cache", pending=self.pending())
                return False
            if self.has_synced():
                self.state = OrchestratorState.RUNNING
                self._log.info("cache synced successfully")
                return True
            try:
                await asyncio.wait_for(self.shutdown.wait(), timeout=self._sync_poll_interval)
            except TimeoutError:
                pass

    async def _wait_running(self) -> None:
        """Block until shutdown is requested or any informer task ends."""
        waiter = asyncio.create_task(self.shutdown.wait(), name="shutdown-wait")
        try:
            await asyncio.wait([waiter, *self._tasks], return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

    async def stop(self) -> None:
        """Raise the shared cancellation token and stop every informer.

        Best-effort: informer errors during teardown are logged, not raised.
        Safe to call more than once.
        """
        if self.state is OrchestratorState.STOPPED:
            return
        self.state = OrchestratorState.SHUTTING_DOWN
        self._log.info("shutting down gracefully")
        self.shutdown.set()

        for task in self._tasks:
            if not task.done():
                task.cancel()
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results):
            if isinstance(result, Exception):
                self._log.error("informer stopped with error", task=task.get_name(), error=str(result))
        self.state = OrchestratorState.STOPPED

    def _first_failure(self) -> BaseException | None:
        for task in self._tasks:
            if task.done() and not task.cancelled() and task.exception() is not None:
                return task.exception()
        return None
