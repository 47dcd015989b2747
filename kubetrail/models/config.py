"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubetrail.models.resources import FilterSpec, ResourceIdentity


@dataclass
class FilterConfig:
    """Path and namespace lists as read from the config file."""

    include_paths: list[str] = field(default_factory=list)
    exclude_paths: list[str] = field(default_factory=list)
    namespaces: list[str] = field(default_factory=list)

    def to_spec(self) -> FilterSpec:
        return FilterSpec.build(self.include_paths, self.exclude_paths, self.namespaces)


@dataclass
class ResourceConfig:
    """One ``resources`` entry."""

    version: str
    resource: str
    group: str = ""
    filters: FilterConfig = field(default_factory=FilterConfig)

    @property
    def identity(self) -> ResourceIdentity:
        return ResourceIdentity(group=self.group, version=self.version, resource=self.resource)


@dataclass
class WatchConfig:
    """Watch layer tunables."""

    resync_seconds: float = 1.0
    sync_poll_seconds: float = 0.1


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "debug"


@dataclass
class KubeTrailConfig:
    """Top-level kubetrail configuration."""

    common: FilterConfig = field(default_factory=FilterConfig)
    resources: list[ResourceConfig] = field(default_factory=list)
    watch: WatchConfig = field(default_factory=WatchConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def filter_spec_for(self, resource: ResourceConfig) -> FilterSpec:
        """Return the effective spec: common lists followed by the resource's own."""
        return FilterSpec.merged(self.common.to_spec(), resource.filters.to_spec())
