"""
Localizer

Discovers services running in a Kubernetes cluster and exposes them to a local
client through a streaming gRPC API.
"""

__version__ = "0.1.0"

from .discovery import Service, ServiceDiscovery, ServicePort

__all__ = [
    "__version__",
    "Service",
    "ServiceDiscovery",
    "ServicePort",
]
