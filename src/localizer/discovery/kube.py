"""
Kubernetes backend for service discovery.

Wraps the synchronous ``kubernetes`` client. Each page fetch runs in a worker
thread so that cancelling the awaiting task abandons the fetch.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from localizer.config import AppSettings
from localizer.errors import BackendError, ResourceExpiredError

from .models import DeclaredPort, ServicePage, ServiceResource

logger = structlog.get_logger(__name__)

STATUS_REASON_EXPIRED = "Expired"
HTTP_GONE = 410


def is_resource_expired(exc: ApiException) -> bool:
    """Return True when ``exc`` reports an expired continuation token."""
    try:
        status = json.loads(exc.body) if exc.body else None
    except (TypeError, ValueError):
        status = None

    if isinstance(status, dict) and status.get("reason"):
        return status["reason"] == STATUS_REASON_EXPIRED
    return exc.status == HTTP_GONE


def load_core_v1(kubeconfig: str | None = None, context: str | None = None) -> client.CoreV1Api:
    """Build a CoreV1Api from in-cluster config or a kubeconfig file."""
    if kubeconfig or context:
        config.load_kube_config(config_file=kubeconfig, context=context)
    else:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()

    return client.CoreV1Api()


class KubernetesServiceLister:
    """Lists services across all namespaces with the Kubernetes API."""

    def __init__(
        self,
        core_v1: client.CoreV1Api,
        page_size: int = 500,
        request_timeout: float | None = None,
    ):
        self._core_v1 = core_v1
        self._page_size = page_size
        self._request_timeout = request_timeout

    @classmethod
    def from_settings(cls, settings: AppSettings) -> KubernetesServiceLister:
        try:
            core_v1 = load_core_v1(settings.kubeconfig, settings.kube_context)
        except config.ConfigException as e:
            raise BackendError("unable to load Kubernetes configuration", cause=e) from e
        return cls(
            core_v1,
            page_size=settings.page_size,
            request_timeout=settings.request_timeout,
        )

    async def list_services(self, continue_token: str) -> ServicePage:
        return await asyncio.to_thread(self._list_page, continue_token)

    def _list_page(self, continue_token: str) -> ServicePage:
        kwargs: dict[str, Any] = {}
        if self._page_size:
            kwargs["limit"] = self._page_size
        if continue_token:
            kwargs["_continue"] = continue_token
        if self._request_timeout is not None:
            kwargs["_request_timeout"] = self._request_timeout

        try:
            response = self._core_v1.list_service_for_all_namespaces(**kwargs)
        except ApiException as e:
            if is_resource_expired(e):
                raise ResourceExpiredError("continuation token expired", cause=e) from e
            raise BackendError(
                f"kubernetes API returned {e.status} {e.reason}", cause=e
            ) from e

        items = tuple(_to_resource(service) for service in response.items or [])
        continue_token = (response.metadata._continue if response.metadata else None) or ""
        logger.debug("kubernetes.services.listed", items=len(items), more=bool(continue_token))
        return ServicePage(items=items, continue_token=continue_token)


def _to_resource(service: client.V1Service) -> ServiceResource:
    metadata = service.metadata
    spec_ports = service.spec.ports if service.spec else None
    return ServiceResource(
        name=metadata.name,
        namespace=metadata.namespace,
        ports=tuple(
            DeclaredPort(name=port.name or "", port=port.port) for port in spec_ports or []
        ),
        annotations=dict(metadata.annotations or {}),
    )
