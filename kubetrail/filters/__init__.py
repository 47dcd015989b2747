"""Field projection, namespace scoping and change detection.

All functions here are pure: identical inputs always give identical outputs
and no input tree is ever modified.

Submodules:
    tree    -- NodeKind classification and structural equality.
    paths   -- Dotted-path get/set/remove and ``project``.
    scope   -- Namespace filter.
    change  -- Update suppression.
"""

from kubetrail.filters.change import is_notable_change
from kubetrail.filters.paths import get_path, project, remove_path, set_path, split_path
from kubetrail.filters.scope import in_scope, object_namespace
from kubetrail.filters.tree import NodeKind, node_kind, tree_equal

__all__ = [
    "NodeKind",
    "get_path",
    "in_scope",
    "is_notable_change",
    "node_kind",
    "object_namespace",
    "project",
    "remove_path",
    "set_path",
    "split_path",
    "tree_equal",
]
