"""Application bootstrap for kubetrail.

Startup order: config → logging → cluster client → watchers → informers
              → orchestrator (start, sync, run)

Every failure before the orchestrator reaches ``running`` is fatal and leaves
nothing behind: no informer is started until the client exists, and a failed
sync stops every informer before exit. Exit status is 0 after an interrupt
and 1 for any fatal error.
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import TYPE_CHECKING

from kubetrail.collector.client import ClientConstructionError, ClusterClient, create_dynamic_client
from kubetrail.collector.informer import Informer
from kubetrail.collector.source import DynamicWatchSource, WatchSource
from kubetrail.collector.watcher import ResourceWatcher
from kubetrail.config import ConfigError, load_config
from kubetrail.emit import EmissionError, EventEmitter
from kubetrail.models.config import KubeTrailConfig
from kubetrail.observability.logging import get_logger, setup_logging
from kubetrail.orchestrator import SyncError, WatchOrchestrator

if TYPE_CHECKING:
    import structlog

EXIT_OK = 0
EXIT_FAILURE = 1


class KubeTrailApp:
    """Application root. Owns the client, the informers and the orchestrator."""

    def __init__(
        self,
        config: KubeTrailConfig,
        emitter: EventEmitter | None = None,
        shutdown: asyncio.Event | None = None,
    ) -> None:
        self.config = config
        self.emitter = emitter or EventEmitter()
        self.shutdown = shutdown or asyncio.Event()
        self.orchestrator: WatchOrchestrator | None = None
        self._client: ClusterClient | None = None
        self._log: structlog.stdlib.BoundLogger = get_logger("app")

    def build_watchers(self) -> list[ResourceWatcher]:
        """One watcher per configured resource, each with its merged filter spec."""
        logger = get_logger("watcher")
        return [
            ResourceWatcher(
                identity=resource.identity,
                spec=self.config.filter_spec_for(resource),
                emitter=self.emitter,
                logger=logger,
            )
            for resource in self.config.resources
        ]

    def build_orchestrator(self, source: WatchSource) -> WatchOrchestrator:
        informers = [
            Informer(source, watcher, resync_period=self.config.watch.resync_seconds)
            for watcher in self.build_watchers()
        ]
        self.orchestrator = WatchOrchestrator(
            informers,
            self.shutdown,
            sync_poll_interval=self.config.watch.sync_poll_seconds,
        )
        return self.orchestrator

    def request_shutdown(self) -> None:
        """Translate an interrupt into the shared cancellation token, once."""
        if self.shutdown.is_set():
            return
        self._log.info("interrupt received")
        self.shutdown.set()

    async def run(self, source: WatchSource | None = None) -> None:
        """Connect (unless *source* is given) and watch until shutdown.

        Raises:
            ClientConstructionError, SyncError, EmissionError: fatal conditions.
        """
        if source is None:
            self._client = await create_dynamic_client()
            source = DynamicWatchSource(self._client.dynamic)
        try:
            await self.build_orchestrator(source).run()
        finally:
            await self._close_client()

    async def _close_client(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.close()
        except Exception as exc:
            self._log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._client = None


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config_path: str | Path = "config.yaml") -> int:
    """Load config, register OS signals, run until interrupted. Returns the exit status."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        setup_logging()
        get_logger("app").critical("fatal configuration error", path=str(config_path), error=str(exc))
        return EXIT_FAILURE

    setup_logging(config.log.level)
    log = get_logger("app")
    log.info("kubetrail starting", resources=len(config.resources))

    app = KubeTrailApp(config)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, app.request_shutdown)

    try:
        await app.run()
    except ClientConstructionError as exc:
        log.critical("failed to create dynamic client", error=str(exc))
        return EXIT_FAILURE
    except SyncError as exc:
        log.critical("failed to sync cache", pending=exc.pending, error=str(exc))
        return EXIT_FAILURE
    except EmissionError as exc:
        log.critical("failed to write event record", error=str(exc.cause))
        return EXIT_FAILURE
    except Exception as exc:
        log.critical("informer failed", error=str(exc))
        return EXIT_FAILURE
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)

    log.info("kubetrail stopped")
    return EXIT_OK
