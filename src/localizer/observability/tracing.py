"""OpenTelemetry tracing configuration."""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from localizer.config import AppSettings


def build_resource(settings: AppSettings) -> Resource:
    """Describe this process and the cluster it discovers services in."""

    return Resource.create(
        {
            "service.name": settings.service_name,
            "service.version": settings.version,
            "deployment.environment": settings.environment,
            # unset means the kubeconfig's current context or in-cluster config
            "localizer.kube.context": settings.kube_context or "",
            "localizer.discovery.page_size": settings.page_size,
            "localizer.remap.port_bits": settings.remap_port_bits,
        }
    )


def configure_tracer(settings: AppSettings) -> TracerProvider | None:
    """Configure and register the global tracer provider if tracing is enabled."""

    if not settings.tracing_enabled:
        return None

    provider = TracerProvider(resource=build_resource(settings))
    exporter = OTLPSpanExporter(endpoint=settings.tracing_endpoint, insecure=True)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return provider
