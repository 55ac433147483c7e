"""Prometheus metrics helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Thread
from typing import Final
from wsgiref.simple_server import WSGIServer

from prometheus_client import Counter, Gauge, Histogram, start_http_server

_DISCOVERY_SCANS: Final[Counter] = Counter(
    "localizer_discovery_scans_total",
    "Discovery scans by outcome",
    labelnames=("outcome",),
)
_DISCOVERY_RESTARTS: Final[Counter] = Counter(
    "localizer_discovery_restarts_total",
    "Discovery scans restarted because the continuation token expired",
)
_DISCOVERY_SERVICES: Final[Gauge] = Gauge(
    "localizer_discovery_services",
    "Services returned by the last successful discovery scan",
)
_DISCOVERY_LATENCY: Final[Histogram] = Histogram(
    "localizer_discovery_duration_seconds",
    "Histogram of discovery scan latency",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
_CONSOLE_STREAMS: Final[Counter] = Counter(
    "localizer_console_streams_total",
    "Console streaming RPCs by method and outcome",
    labelnames=("method", "outcome"),
)


def observe_discovery(outcome: str, latency_seconds: float, services: int | None = None) -> None:
    _DISCOVERY_SCANS.labels(outcome=outcome).inc()
    _DISCOVERY_LATENCY.observe(latency_seconds)
    if services is not None:
        _DISCOVERY_SERVICES.set(services)


def observe_restart() -> None:
    _DISCOVERY_RESTARTS.inc()


def observe_stream(method: str, outcome: str) -> None:
    _CONSOLE_STREAMS.labels(method=method, outcome=outcome).inc()


@dataclass(slots=True)
class MetricsServer:
    """Tiny wrapper that exposes metrics and manages the HTTP exporter."""

    host: str
    port: int
    _server: WSGIServer | None = field(default=None, init=False)
    _thread: Thread | None = field(default=None, init=False)

    @property
    def bound_port(self) -> int | None:
        """Listening port, with the real port when 0 was requested."""
        return self._server.server_port if self._server else None

    def start(self) -> None:
        if self._server is not None:
            return

        self._server, self._thread = start_http_server(port=self.port, addr=self.host)

    def stop(self) -> None:
        if self._server is None:
            return

        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
        self._server = None
        self._thread = None
