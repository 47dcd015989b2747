"""Watched resource identity and filter data structures."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResourceIdentity:
    """Group/version/resource triple identifying a watched type."""

    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        """Return the apiVersion string (``v1`` for the core group, else ``group/version``)."""
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return f"{self.api_version}/{self.resource}"


@dataclass(frozen=True)
class FilterSpec:
    """Include/exclude paths and allowed namespaces for one resource kind.

    Path order is preserved and duplicates are kept: the effective spec is the
    plain concatenation of the common and per-resource lists.
    """

    include_paths: tuple[str, ...] = ()
    exclude_paths: tuple[str, ...] = ()
    namespaces: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def merged(cls, common: FilterSpec, own: FilterSpec) -> FilterSpec:
        """Concatenate *common* with *own*, common entries first."""
        return cls(
            include_paths=common.include_paths + own.include_paths,
            exclude_paths=common.exclude_paths + own.exclude_paths,
            namespaces=common.namespaces | own.namespaces,
        )

    @classmethod
    def build(
        cls,
        include_paths: Iterable[str] = (),
        exclude_paths: Iterable[str] = (),
        namespaces: Iterable[str] = (),
    ) -> FilterSpec:
        return cls(
            include_paths=tuple(include_paths),
            exclude_paths=tuple(exclude_paths),
            namespaces=frozenset(namespaces),
        )
