"""Kubernetes dynamic client construction.

Credential sources are tried in a fixed order and the first that loads wins:

1. the kubeconfig file named by ``$KUBECONFIG``
2. ``~/.kube/config``
3. the in-cluster service account

If none loads, ``ClientConstructionError`` is raised before any watch starts.
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
from kubernetes_asyncio.client import ApiClient, Configuration  # type: ignore[import-untyped]
from kubernetes_asyncio.dynamic import DynamicClient  # type: ignore[import-untyped]

from kubetrail.observability.logging import get_logger

_log = get_logger("collector.client")

DEFAULT_KUBECONFIG = Path.home() / ".kube" / "config"


class ClientConstructionError(Exception):
    """Raised when no credential source produced a usable client configuration."""

    def __init__(self, attempts: dict[str, Exception]) -> None:
        detail = "; ".join(f"{name}: {exc}" for name, exc in attempts.items()) or "no sources tried"
        super().__init__(f"no usable cluster credentials ({detail})")
        self.attempts = attempts


@dataclass
class ClusterClient:
    """Connected dynamic client plus the credential source it was built from."""

    api_client: ApiClient
    dynamic: Any
    credential_source: str

    async def close(self) -> None:
        await self.api_client.close()


def _kubeconfig_loader(path: str) -> Callable[[Configuration], Awaitable[None]]:
    async def _load(configuration: Configuration) -> None:
        if not Path(path).is_file():
            raise FileNotFoundError(f"kubeconfig not found: {path}")
        await k8s_config.load_kube_config(config_file=path, client_configuration=configuration)

    return _load


async def _load_incluster(configuration: Configuration) -> None:
    # load_incluster_config() is synchronous in kubernetes-asyncio
    k8s_config.load_incluster_config(client_configuration=configuration)


def credential_sources(
    kubeconfig_env: str = "KUBECONFIG",
    default_kubeconfig: Path = DEFAULT_KUBECONFIG,
) -> list[tuple[str, Callable[[Configuration], Awaitable[None]]]]:
    """Return the ordered ``(name, loader)`` credential sources."""
    sources: list[tuple[str, Callable[[Configuration], Awaitable[None]]]] = []
    explicit = os.environ.get(kubeconfig_env, "")
    if explicit:
        sources.append((f"${kubeconfig_env}", _kubeconfig_loader(explicit)))
    sources.append(("default kubeconfig", _kubeconfig_loader(str(default_kubeconfig))))
    sources.append(("in-cluster", _load_incluster))
    return sources


async def load_client_configuration(
    kubeconfig_env: str = "KUBECONFIG",
    default_kubeconfig: Path = DEFAULT_KUBECONFIG,
) -> tuple[Configuration, str]:
    """Resolve credentials, returning the configuration and the source name.

    Raises:
        ClientConstructionError: every source failed.
    """
    attempts: dict[str, Exception] = {}
    for name, loader in credential_sources(kubeconfig_env, default_kubeconfig):
        configuration = Configuration()
        try:
            await loader(configuration)
        except Exception as exc:
            _log.debug("credential source failed", source=name, error=str(exc))
            attempts[name] = exc
            continue
        _log.info("cluster credentials loaded", source=name)
        return configuration, name
    raise ClientConstructionError(attempts)


async def _build_dynamic(api_client: ApiClient) -> Any:
    return await DynamicClient(api_client)


async def create_dynamic_client(
    kubeconfig_env: str = "KUBECONFIG",
    default_kubeconfig: Path = DEFAULT_KUBECONFIG,
) -> ClusterClient:
    """Build a dynamic client from the first credential source that loads.

    Raises:
        ClientConstructionError: no credentials, or the client could not be
            initialised from the loaded configuration.
    """
    configuration, source = await load_client_configuration(kubeconfig_env, default_kubeconfig)
    api_client = ApiClient(configuration=configuration)
    try:
        dynamic = await _build_dynamic(api_client)
    except Exception as exc:
        await api_client.close()
        raise ClientConstructionError({source: exc}) from exc
    return ClusterClient(api_client=api_client, dynamic=dynamic, credential_source=source)
