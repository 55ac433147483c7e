"""Command line interface for localizer."""

from __future__ import annotations

import asyncio
import json

import click
import grpc
import structlog
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from localizer import __version__
from localizer.api.v1 import v1_pb2, v1_pb2_grpc
from localizer.config import AppSettings
from localizer.discovery import Service, ServiceDiscovery
from localizer.discovery.kube import KubernetesServiceLister
from localizer.errors import LocalizerError
from localizer.observability import configure_logging, configure_tracer
from localizer.server import serve as serve_grpc
from localizer.service import describe_error

console = Console()

_LEVEL_STYLES = {
    v1_pb2.CONSOLE_LEVEL_INFO: ("INFO", "green"),
    v1_pb2.CONSOLE_LEVEL_WARN: ("WARN", "yellow"),
    v1_pb2.CONSOLE_LEVEL_ERROR: ("ERROR", "bold red"),
}


@click.group()
@click.option("--log-level", default=None, help="Override LOCALIZER_LOG_LEVEL")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Discover cluster services and expose them locally."""
    overrides = {"log_level": log_level} if log_level else {}
    settings = AppSettings(**overrides)
    configure_logging(settings.service_name, settings.log_level, settings.log_format)
    ctx.obj = settings


@cli.command()
def version() -> None:
    """Print the localizer version."""
    click.echo(__version__)


@cli.command()
@click.option("--namespace", "-n", default=None, help="Only show services in this namespace")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
)
@click.pass_obj
def discover(settings: AppSettings, namespace: str | None, output: str) -> None:
    """List cluster services and the local port of each service port."""
    try:
        lister = KubernetesServiceLister.from_settings(settings)
        discovery = ServiceDiscovery(lister, remap_port_bits=settings.remap_port_bits)
        services = asyncio.run(
            asyncio.wait_for(discovery.discover(), timeout=settings.discovery_timeout)
        )
    except LocalizerError as e:
        raise click.ClickException(f"Discovery failed: {describe_error(e)}") from e
    except TimeoutError as e:
        raise click.ClickException(
            f"Discovery did not finish within {settings.discovery_timeout}s"
        ) from e

    if namespace:
        services = [service for service in services if service.namespace == namespace]

    if output == "json":
        click.echo(json.dumps([_service_to_dict(service) for service in services], indent=2))
        return

    table = Table(title=f"Services ({len(services)})")
    table.add_column("Namespace", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Ports (remote -> local)")
    for service in services:
        table.add_row(
            service.namespace,
            service.name,
            ", ".join(_format_port(port) for port in service.ports) or "-",
        )
    console.print(table)


@cli.command()
@click.option(
    "--shutdown-after",
    type=float,
    default=None,
    help="Gracefully stop the server after N seconds (useful for tests)",
)
@click.pass_obj
def serve(settings: AppSettings, shutdown_after: float | None) -> None:
    """Run the gRPC server."""
    tracer_provider = configure_tracer(settings)
    logger = structlog.get_logger(__name__)
    logger.info(
        "service.starting",
        version=__version__,
        environment=settings.environment,
        grpc_bind=settings.grpc_bind,
    )

    try:
        asyncio.run(serve_grpc(settings, shutdown_after=shutdown_after))
    except LocalizerError as e:
        raise click.ClickException(describe_error(e)) from e
    finally:
        if tracer_provider is not None:
            tracer_provider.shutdown()

    logger.info("service.stopped")


@cli.command()
@click.argument("namespace")
@click.argument("service")
@click.option(
    "--port-map",
    "-p",
    multiple=True,
    help="local:remote port mapping, may be repeated (defaults to the service ports)",
)
@click.option("--address", default=None, help="Server address (defaults to the gRPC bind)")
@click.pass_obj
def expose(
    settings: AppSettings,
    namespace: str,
    service: str,
    port_map: tuple[str, ...],
    address: str | None,
) -> None:
    """Expose SERVICE in NAMESPACE through a running localizer server."""
    request = v1_pb2.ExposeServiceRequest(
        namespace=namespace, service=service, port_map=list(port_map)
    )
    _run_stream(address or settings.grpc_bind, "ExposeService", request)


@cli.command()
@click.argument("namespace")
@click.argument("service")
@click.option("--address", default=None, help="Server address (defaults to the gRPC bind)")
@click.pass_obj
def stop(settings: AppSettings, namespace: str, service: str, address: str | None) -> None:
    """Stop exposing SERVICE in NAMESPACE."""
    request = v1_pb2.StopExposeRequest(namespace=namespace, service=service)
    _run_stream(address or settings.grpc_bind, "StopExpose", request)


def _run_stream(address: str, method: str, request: object) -> None:
    try:
        worst = asyncio.run(_consume(address, method, request))
    except grpc.aio.AioRpcError as e:
        raise click.ClickException(f"{method} failed: {e.code().name}: {e.details()}") from e

    if worst >= v1_pb2.CONSOLE_LEVEL_ERROR:
        raise SystemExit(1)


async def _consume(address: str, method: str, request: object) -> int:
    """Print the console stream of ``method`` and return the most severe level seen."""
    worst = v1_pb2.CONSOLE_LEVEL_UNSPECIFIED
    async with grpc.aio.insecure_channel(address) as channel:
        stub = v1_pb2_grpc.LocalizerServiceStub(channel)
        async for response in getattr(stub, method)(request):
            render_console_line(response)
            worst = max(worst, response.level)
    return worst


def render_console_line(response: v1_pb2.ConsoleResponse) -> None:
    label, style = _LEVEL_STYLES.get(response.level, ("?", "dim"))
    console.print(f"[{style}]{label:<5}[/{style}] {escape(response.message)}")


def _format_port(port) -> str:
    text = f"{port.remote_port} -> {port.local_port}"
    return f"{text} ({port.name})" if port.name else text


def _service_to_dict(service: Service) -> dict:
    return {
        "name": service.name,
        "namespace": service.namespace,
        "ports": [
            {"name": port.name, "remotePort": port.remote_port, "localPort": port.local_port}
            for port in service.ports
        ],
    }


if __name__ == "__main__":
    cli()
