"""AsyncIO gRPC server bootstrap."""

from __future__ import annotations

import asyncio
import signal

import grpc
import structlog

from localizer.api.v1 import v1_pb2_grpc
from localizer.config import AppSettings
from localizer.discovery import ServiceDiscovery
from localizer.discovery.kube import KubernetesServiceLister
from localizer.observability import MetricsServer
from localizer.service import DryRunForwarder, Exposer, LocalizerService, ServiceExposer


def build_exposer(settings: AppSettings) -> ServiceExposer:
    """Wire cluster discovery to the dry-run forwarder."""
    discovery = ServiceDiscovery(
        KubernetesServiceLister.from_settings(settings),
        remap_port_bits=settings.remap_port_bits,
    )
    return ServiceExposer(
        discovery,
        DryRunForwarder(local_host=settings.grpc_host),
        discovery_timeout=settings.discovery_timeout,
    )


class GRPCServer:
    """Orchestrates gRPC lifecycle, metrics, and graceful shutdown."""

    def __init__(self, settings: AppSettings, exposer: Exposer | None = None) -> None:
        self._settings = settings
        self._logger = structlog.get_logger(__name__)

        host, port = settings.metrics_bind
        self._metrics = MetricsServer(host=host, port=port) if settings.metrics_enabled else None

        self._server = grpc.aio.server(
            options=[
                ("grpc.keepalive_time_ms", 10000),
                ("grpc.keepalive_timeout_ms", 5000),
            ]
        )
        v1_pb2_grpc.add_LocalizerServiceServicer_to_server(
            LocalizerService(
                exposer if exposer is not None else build_exposer(settings),
                console_buffer_size=settings.console_buffer_size,
            ),
            self._server,
        )
        self._port = self._server.add_insecure_port(settings.grpc_bind)

    @property
    def address(self) -> str:
        """Bound `host:port`, with the real port when 0 was requested."""
        return f"{self._settings.grpc_host}:{self._port}"

    async def serve_forever(self, shutdown_after: float | None = None) -> None:
        await self.start()
        await self._wait_for_termination(shutdown_after)

    async def _wait_for_termination(self, shutdown_after: float | None) -> None:
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        try:
            if shutdown_after is None:
                await stop_event.wait()
            else:
                await asyncio.wait_for(stop_event.wait(), timeout=shutdown_after)
        except TimeoutError:
            self._logger.info("grpc.server.shutdown_timer.elapsed", seconds=shutdown_after)

        await self.stop()

    async def start(self) -> None:
        if self._metrics is not None:
            self._metrics.start()
        await self._server.start()
        self._logger.info("grpc.server.started", bind=self.address)

    async def stop(self) -> None:
        self._logger.info("grpc.server.stopping")
        await self._server.stop(self._settings.shutdown_grace_period)
        if self._metrics is not None:
            self._metrics.stop()
        self._logger.info("grpc.server.stopped")


async def serve(settings: AppSettings, shutdown_after: float | None = None) -> None:
    server = GRPCServer(settings)
    await server.serve_forever(shutdown_after=shutdown_after)
