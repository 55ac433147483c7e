"""Streaming expose/stop service and its executor."""

from .exposer import (
    DryRunForwarder,
    Exposer,
    Exposure,
    PortForwarder,
    PortMapping,
    ServiceExposer,
    parse_port_map,
)
from .localizer import LocalizerService, describe_error

__all__ = [
    "DryRunForwarder",
    "Exposer",
    "Exposure",
    "LocalizerService",
    "PortForwarder",
    "PortMapping",
    "ServiceExposer",
    "describe_error",
    "parse_port_map",
]
