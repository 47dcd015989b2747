"""Object tree node classification and structural equality.

Objects delivered by the watch layer are JSON-shaped Python values. Plain
``==`` is not used to compare them because it treats ``True`` and ``1`` as
equal; ``tree_equal`` compares node kinds first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any


class NodeKind(StrEnum):
    """Variant kind of a tree node."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def node_kind(value: Any) -> NodeKind:
    """Classify *value*.

    Raises:
        TypeError: *value* is not a JSON-shaped node.
    """
    if value is None:
        return NodeKind.NULL
    # bool is a subclass of int; check it first
    if isinstance(value, bool):
        return NodeKind.BOOL
    if isinstance(value, (int, float)):
        return NodeKind.NUMBER
    if isinstance(value, str):
        return NodeKind.STRING
    if isinstance(value, Mapping):
        return NodeKind.MAPPING
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return NodeKind.SEQUENCE
    raise TypeError(f"unsupported tree node type: {type(value).__name__}")


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def tree_equal(a: Any, b: Any) -> bool:
    """Return True if *a* and *b* are structurally equal.

    Mappings compare key sets and per-key values, ignoring key order.
    Sequences compare positionally. Scalars compare by value within the same
    node kind.
    """
    kind = node_kind(a)
    if kind is not node_kind(b):
        return False
    if kind is NodeKind.MAPPING:
        if a.keys() != b.keys():
            return False
        return all(tree_equal(a[key], b[key]) for key in a)
    if kind is NodeKind.SEQUENCE:
        if len(a) != len(b):
            return False
        return all(tree_equal(x, y) for x, y in zip(a, b))
    return bool(a == b)
