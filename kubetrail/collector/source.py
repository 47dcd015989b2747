"""List/watch transport for one resource kind.

``WatchSource`` is the seam between the informer and the cluster API;
``DynamicWatchSource`` implements it on the kubernetes-asyncio dynamic client
so that any group/version/resource can be watched without generated models.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol

from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from kubetrail.models.resources import ResourceIdentity

# Server-side watch timeout; the informer re-opens the stream when it ends.
DEFAULT_WATCH_TIMEOUT_SECONDS = 300


class RelistRequired(Exception):
    """The watch cannot resume from its resourceVersion; a re-list is required."""


class ResourceExpired(RelistRequired):
    """The requested resourceVersion is too old (HTTP 410)."""


class WatchSource(Protocol):
    """Transport contract consumed by ``Informer``."""

    async def list(self, identity: ResourceIdentity) -> tuple[list[dict[str, Any]], str]:
        """Return every object of *identity* and the list's resourceVersion."""
        ...

    def watch(
        self,
        identity: ResourceIdentity,
        resource_version: str,
        timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS,
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield ``{"type": ..., "object": {...}}`` watch events.

        Raises:
            ResourceExpired: *resource_version* is no longer available.
            RelistRequired: the stream delivered an ERROR event.
        """
        ...


def as_tree(obj: Any) -> dict[str, Any]:
    """Convert a dynamic client ResourceInstance (or plain dict) to a plain dict."""
    if isinstance(obj, dict):
        return obj
    to_dict = getattr(obj, "to_dict", None)
    if to_dict is not None:
        return to_dict()  # type: ignore[no-any-return]
    return dict(obj)


class DynamicWatchSource:
    """``WatchSource`` backed by ``kubernetes_asyncio.dynamic.DynamicClient``."""

    def __init__(self, dynamic: Any) -> None:
        self._dynamic = dynamic
        self._resources: dict[ResourceIdentity, Any] = {}

    async def _resource(self, identity: ResourceIdentity) -> Any:
        resource = self._resources.get(identity)
        if resource is None:
            resource = await self._dynamic.resources.get(
                api_version=identity.api_version,
                name=identity.resource,
            )
            self._resources[identity] = resource
        return resource

    async def list(self, identity: ResourceIdentity) -> tuple[list[dict[str, Any]], str]:
        resource = await self._resource(identity)
        result = as_tree(await self._dynamic.get(resource))
        items = [as_tree(item) for item in result.get("items") or []]
        resource_version = str((result.get("metadata") or {}).get("resourceVersion", ""))
        return items, resource_version

    async def watch(
        self,
        identity: ResourceIdentity,
        resource_version: str,
        timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS,
    ) -> AsyncIterator[dict[str, Any]]:
        resource = await self._resource(identity)
        try:
            async for event in self._dynamic.watch(
                resource,
                resource_version=resource_version or None,
                timeout=timeout_seconds,
            ):
                raw = event.get("raw_object")
                obj = raw if isinstance(raw, dict) else as_tree(event.get("object"))
                yield {"type": event.get("type", ""), "object": obj}
        except ApiException as exc:
            if exc.status == 410:
                raise ResourceExpired(str(exc)) from exc
            # ERROR events are raised without an HTTP response attached
            if exc.headers is None:
                raise RelistRequired(str(exc)) from exc
            raise
