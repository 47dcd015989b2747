"""Update suppression: decide whether an update changed any watched field."""

from __future__ import annotations

from typing import Any

from kubetrail.filters.paths import project
from kubetrail.filters.tree import tree_equal
from kubetrail.models.resources import FilterSpec


def is_notable_change(old_tree: Any, new_tree: Any, spec: FilterSpec) -> bool:
    """Return True if the filtered snapshots of *old_tree* and *new_tree* differ.

    Resyncs redeliver unchanged objects as updates; those project to equal
    snapshots and are reported as not notable.
    """
    old_snapshot = project(old_tree, spec.include_paths, spec.exclude_paths)
    new_snapshot = project(new_tree, spec.include_paths, spec.exclude_paths)
    return not tree_equal(old_snapshot, new_snapshot)
