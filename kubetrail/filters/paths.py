"""Dotted-path addressing and field projection over object trees.

A path such as ``metadata.annotations`` addresses nested mapping keys only;
there is no list indexing. Whenever traversal hits a non-mapping node before
the last segment, the operation is a silent no-op for that path.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

from kubetrail.filters.tree import is_mapping


def split_path(path: str) -> list[str]:
    """Split a dotted path into segments. The empty path has no segments."""
    if not path:
        return []
    return path.split(".")


def get_path(tree: Any, path: str) -> tuple[Any, bool]:
    """Return ``(value, found)`` for *path* inside *tree*."""
    segments = split_path(path)
    if not segments:
        return None, False
    node = tree
    for segment in segments:
        if not is_mapping(node) or segment not in node:
            return None, False
        node = node[segment]
    return node, True


def set_path(tree: dict[str, Any], path: str, value: Any) -> bool:
    """Store *value* at *path*, creating intermediate mappings.

    Returns False (and leaves *tree* untouched) if an existing intermediate
    node is not a mapping.
    """
    segments = split_path(path)
    if not segments or not is_mapping(tree):
        return False
    node = tree
    for segment in segments[:-1]:
        if segment not in node:
            node[segment] = {}
        node = node[segment]
        if not is_mapping(node):
            return False
    node[segments[-1]] = value
    return True


def remove_path(tree: Any, path: str) -> bool:
    """Delete the value at *path*. Returns True if something was removed."""
    segments = split_path(path)
    if not segments:
        return False
    node = tree
    for segment in segments[:-1]:
        if not is_mapping(node) or segment not in node:
            return False
        node = node[segment]
    if not is_mapping(node) or segments[-1] not in node:
        return False
    del node[segments[-1]]
    return True


def project(
    tree: Any,
    include_paths: Iterable[str] = (),
    exclude_paths: Iterable[str] = (),
) -> dict[str, Any]:
    """Build a filtered snapshot of *tree*.

    With no include paths the snapshot starts as a deep copy of *tree*;
    otherwise it starts empty and receives a deep copy of every include path
    found in *tree*. Exclude paths are then removed from the snapshot.

    The input is never modified and the result shares no nodes with it.
    """
    includes = list(include_paths)
    result: Any
    if not includes:
        result = copy.deepcopy(tree)
    else:
        result = {}
        for path in includes:
            value, found = get_path(tree, path)
            if found:
                set_path(result, path, copy.deepcopy(value))
    for path in exclude_paths:
        remove_path(result, path)
    return result
