"""
Value types produced and consumed by service discovery.

Everything here is created fresh for a single discovery scan and is never
mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ServicePort:
    """A port exposed by a remote service and the local port it maps to."""

    remote_port: int
    local_port: int
    name: str = ""


@dataclass(frozen=True, slots=True)
class Service:
    """A service running in the cluster that should be proxied local <-> remote."""

    name: str
    namespace: str
    ports: tuple[ServicePort, ...] = ()

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True, slots=True)
class DeclaredPort:
    """A port as declared on the cluster service resource."""

    name: str
    port: int


@dataclass(frozen=True, slots=True)
class ServiceResource:
    """Backend-neutral view of a cluster service resource."""

    name: str
    namespace: str
    ports: tuple[DeclaredPort, ...] = ()
    annotations: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ServicePage:
    """One page of a paginated service listing.

    An empty ``continue_token`` marks the final page.
    """

    items: tuple[ServiceResource, ...]
    continue_token: str = ""
