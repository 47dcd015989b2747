"""Namespace scoping for watched objects."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from kubetrail.filters.paths import get_path


def object_namespace(tree: Any) -> str:
    """Return ``metadata.namespace`` or ``""`` for cluster-scoped objects."""
    value, found = get_path(tree, "metadata.namespace")
    if not found or not isinstance(value, str):
        return ""
    return value


def in_scope(tree: Any, namespaces: Collection[str]) -> bool:
    """Return True if the object's namespace is watched.

    Cluster-scoped objects are always in scope, as is everything when no
    namespaces are configured.
    """
    namespace = object_namespace(tree)
    if not namespace or not namespaces:
        return True
    return namespace in namespaces
