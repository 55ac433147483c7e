"""
Consistent, paginated service discovery.

``ServiceDiscovery.discover`` walks every page of the backend listing and
returns the full service list. When the backend reports that the continuation
token has expired, everything gathered so far is dropped and the scan starts
again from the first page, so a returned list always comes from a single pass.
Any other backend failure aborts the scan without partial results.

The restart loop is unbounded; callers that need a deadline wrap the call in
``asyncio.wait_for`` or cancel the task.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

import structlog
from opentelemetry import trace

from localizer.errors import DiscoveryError, ResourceExpiredError
from localizer.observability import metrics

from .models import Service, ServicePage, ServiceResource
from .remap import DEFAULT_PORT_BITS, resolve_ports

logger = structlog.get_logger(__name__)


@runtime_checkable
class ServiceLister(Protocol):
    """Backend able to list service resources across all namespaces."""

    async def list_services(self, continue_token: str) -> ServicePage:
        """Return the page that starts at ``continue_token`` ("" for the first page).

        Raises ``ResourceExpiredError`` when the token is no longer valid.
        """


class ServiceDiscovery:
    """Finds remote services and computes the local port of each service port."""

    def __init__(self, lister: ServiceLister, remap_port_bits: int = DEFAULT_PORT_BITS):
        self._lister = lister
        self._remap_port_bits = remap_port_bits
        self._tracer = trace.get_tracer(__name__)

    async def discover(self) -> list[Service]:
        """Return every service in the cluster from one consistent scan."""
        start = time.perf_counter()
        with self._tracer.start_as_current_span("discovery.discover") as span:
            try:
                services = await self._scan()
            except DiscoveryError:
                metrics.observe_discovery("error", time.perf_counter() - start)
                raise

            span.set_attribute("discovery.services", len(services))

        elapsed = time.perf_counter() - start
        metrics.observe_discovery("success", elapsed, services=len(services))
        logger.info(
            "discovery.scan.completed",
            services=len(services),
            duration_seconds=round(elapsed, 3),
        )
        return services

    async def _scan(self) -> list[Service]:
        continue_token = ""
        pages = 0
        services: list[Service] = []
        while True:
            try:
                page = await self._lister.list_services(continue_token)
            except ResourceExpiredError:
                # mixing pages from two token epochs is inconsistent, start over
                logger.warning("discovery.scan.restarted", discarded=len(services), pages=pages)
                metrics.observe_restart()
                services = []
                continue_token = ""
                pages = 0
                continue
            except Exception as e:
                logger.error("discovery.scan.failed", error=str(e), pages=pages)
                raise DiscoveryError("failed to retrieve services", cause=e) from e

            pages += 1
            services.extend(self._build_service(item) for item in page.items)

            if not page.continue_token:
                return services

            continue_token = page.continue_token

    def _build_service(self, resource: ServiceResource) -> Service:
        return Service(
            name=resource.name,
            namespace=resource.namespace,
            ports=resolve_ports(resource.ports, resource.annotations, self._remap_port_bits),
        )
