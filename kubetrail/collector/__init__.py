"""Collector package for kubetrail.

Connects to the cluster and turns list/watch streams into per-kind
add/update/delete callbacks.

Submodules
----------
client   -- credential resolution and dynamic client construction.
source   -- WatchSource protocol and the kubernetes-asyncio dynamic implementation.
informer -- Informer: list, watch, local store, periodic resync, synced flag.
watcher  -- ResourceWatcher: namespace filter, update suppression, emission.
"""

from kubetrail.collector.informer import Informer
from kubetrail.collector.source import DynamicWatchSource, RelistRequired, ResourceExpired, WatchSource
from kubetrail.collector.watcher import ResourceWatcher

__all__ = [
    "DynamicWatchSource",
    "Informer",
    "RelistRequired",
    "ResourceExpired",
    "ResourceWatcher",
    "WatchSource",
]
