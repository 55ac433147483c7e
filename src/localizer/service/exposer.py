"""
Expose/stop executor behind the streaming RPCs.

``ServiceExposer`` resolves the requested service through discovery, turns the
request's port map into concrete local -> remote mappings and hands them to a
``PortForwarder``. Progress is reported on the caller's ``ConsoleStream``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from localizer.api.v1 import v1_pb2
from localizer.console import ConsoleStream
from localizer.discovery import Service, ServiceDiscovery
from localizer.errors import ExposeError, PortMapError, ServiceNotFoundError

logger = structlog.get_logger(__name__)

MAX_PORT = 65535


@dataclass(frozen=True, slots=True)
class PortMapping:
    local_port: int
    remote_port: int

    def __str__(self) -> str:
        return f"{self.local_port}:{self.remote_port}"


def parse_port_map(entries: Sequence[str]) -> list[PortMapping]:
    """Parse ``"local:remote"`` (or ``"port"``) entries into mappings."""
    mappings = []
    for entry in entries:
        local, sep, remote = entry.strip().partition(":")
        if not sep:
            remote = local
        mappings.append(
            PortMapping(
                local_port=_parse_port(local, entry),
                remote_port=_parse_port(remote, entry),
            )
        )
    return mappings


def _parse_port(value: str, entry: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise PortMapError(f"invalid port map entry '{entry}', expected local:remote")
    port = int(value)
    if not 1 <= port <= MAX_PORT:
        raise PortMapError(f"port {port} in '{entry}' is out of range")
    return port


class Exposer(Protocol):
    """Long-running operations driven by the streaming RPCs."""

    async def expose(
        self, request: v1_pb2.ExposeServiceRequest, console: ConsoleStream
    ) -> None: ...

    async def stop(self, request: v1_pb2.StopExposeRequest, console: ConsoleStream) -> None: ...


class PortForwarder(Protocol):
    """Establishes and tears down the local <-> remote path for a service."""

    async def forward(
        self, service: Service, mappings: Sequence[PortMapping], console: ConsoleStream
    ) -> None: ...

    async def release(
        self, service: Service, mappings: Sequence[PortMapping], console: ConsoleStream
    ) -> None: ...


class DryRunForwarder:
    """Reports the forwards it would create without opening any tunnel."""

    def __init__(self, local_host: str = "127.0.0.1"):
        self._local_host = local_host

    async def forward(
        self, service: Service, mappings: Sequence[PortMapping], console: ConsoleStream
    ) -> None:
        for mapping in mappings:
            logger.info(
                "forward.dry_run.start", service=service.key, mapping=str(mapping)
            )
            await console.info(
                f"dry run: would forward {self._local_host}:{mapping.local_port}"
                f" -> {service.key}:{mapping.remote_port}"
            )

    async def release(
        self, service: Service, mappings: Sequence[PortMapping], console: ConsoleStream
    ) -> None:
        for mapping in mappings:
            logger.info("forward.dry_run.stop", service=service.key, mapping=str(mapping))
            await console.info(
                f"dry run: would stop forwarding {self._local_host}:{mapping.local_port}"
            )


@dataclass(frozen=True, slots=True)
class Exposure:
    service: Service
    mappings: tuple[PortMapping, ...]


class ServiceExposer:
    """Tracks active exposures and drives a ``PortForwarder``."""

    def __init__(
        self,
        discovery: ServiceDiscovery,
        forwarder: PortForwarder,
        discovery_timeout: float | None = None,
    ):
        self._discovery = discovery
        self._forwarder = forwarder
        self._discovery_timeout = discovery_timeout
        self._active: dict[str, Exposure] = {}
        self._pending: set[str] = set()

    @property
    def active(self) -> dict[str, Exposure]:
        return dict(self._active)

    async def expose(
        self, request: v1_pb2.ExposeServiceRequest, console: ConsoleStream
    ) -> None:
        key = _target_key(request.namespace, request.service)
        if key in self._active or key in self._pending:
            await console.warn(f"service {key} is already exposed")
            return

        self._pending.add(key)
        try:
            await console.info(f"looking up service {key}")
            service = await self._lookup(request.namespace, request.service)
            mappings = _plan(service, request.port_map)

            await console.info(
                f"exposing {key} on ports {', '.join(str(m) for m in mappings)}"
            )
            await self._forwarder.forward(service, mappings, console)
            self._active[key] = Exposure(service=service, mappings=tuple(mappings))
        finally:
            self._pending.discard(key)

        logger.info("expose.started", service=key, ports=[str(m) for m in mappings])
        await console.info(f"exposed service {key}")

    async def stop(self, request: v1_pb2.StopExposeRequest, console: ConsoleStream) -> None:
        key = _target_key(request.namespace, request.service)
        exposure = self._active.get(key)
        if exposure is None:
            await console.warn(f"service {key} is not exposed")
            return

        await console.info(f"stopping exposure of {key}")
        # stays registered until the forwarder has let go, so a failed stop can be retried
        await self._forwarder.release(exposure.service, exposure.mappings, console)
        self._active.pop(key, None)

        logger.info("expose.stopped", service=key)
        await console.info(f"stopped exposing service {key}")

    async def _lookup(self, namespace: str, name: str) -> Service:
        try:
            services = await asyncio.wait_for(
                self._discovery.discover(), timeout=self._discovery_timeout
            )
        except TimeoutError as e:
            raise ExposeError(
                f"service discovery did not finish within {self._discovery_timeout}s",
                cause=e,
            ) from e

        for service in services:
            if service.namespace == namespace and service.name == name:
                return service
        raise ServiceNotFoundError(namespace, name)


def _target_key(namespace: str, service: str) -> str:
    if not namespace or not service:
        raise ExposeError("namespace and service are required")
    return f"{namespace}/{service}"


def _plan(service: Service, port_map: Sequence[str]) -> list[PortMapping]:
    if not port_map:
        if not service.ports:
            raise PortMapError(f"service {service.key} declares no ports")
        return [
            PortMapping(local_port=port.local_port, remote_port=port.remote_port)
            for port in service.ports
        ]

    mappings = parse_port_map(port_map)
    declared = {port.remote_port for port in service.ports}
    seen_local: set[int] = set()
    for mapping in mappings:
        if mapping.remote_port not in declared:
            raise PortMapError(
                f"service {service.key} does not declare port {mapping.remote_port}"
            )
        if mapping.local_port in seen_local:
            raise PortMapError(f"local port {mapping.local_port} is mapped twice")
        seen_local.add(mapping.local_port)
    return mappings
