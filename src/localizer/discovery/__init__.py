"""Service discovery: paginated cluster listing plus annotation-driven port remaps."""

from .discovery import ServiceDiscovery, ServiceLister
from .models import DeclaredPort, Service, ServicePage, ServicePort, ServiceResource
from .remap import (
    DEFAULT_PORT_BITS,
    REMAP_ANNOTATION_PREFIX,
    collect_remaps,
    parse_port_override,
    resolve_ports,
)

__all__ = [
    "DEFAULT_PORT_BITS",
    "DeclaredPort",
    "REMAP_ANNOTATION_PREFIX",
    "Service",
    "ServiceDiscovery",
    "ServiceLister",
    "ServicePage",
    "ServicePort",
    "ServiceResource",
    "collect_remaps",
    "parse_port_override",
    "resolve_ports",
]
