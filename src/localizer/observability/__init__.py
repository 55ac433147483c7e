"""Observability helpers (logging, metrics, tracing)."""

from .logging import configure_logging
from .metrics import MetricsServer
from .tracing import build_resource, configure_tracer

__all__ = ["MetricsServer", "build_resource", "configure_logging", "configure_tracer"]
