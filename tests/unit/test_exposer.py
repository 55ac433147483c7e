import asyncio
from unittest.mock import AsyncMock

import pytest

from localizer.api.v1 import v1_pb2
from localizer.console import ConsoleStream
from localizer.discovery import Service, ServicePort
from localizer.errors import DiscoveryError, ExposeError, PortMapError, ServiceNotFoundError
from localizer.service import DryRunForwarder, PortMapping, ServiceExposer, parse_port_map

WEB = Service(
    name="web",
    namespace="default",
    ports=(
        ServicePort(remote_port=80, local_port=8080, name="http"),
        ServicePort(remote_port=9090, local_port=9090, name="metrics"),
    ),
)


def _discovery(*services: Service) -> AsyncMock:
    discovery = AsyncMock()
    discovery.discover.return_value = list(services)
    return discovery


async def _messages(console: ConsoleStream) -> list[tuple[int, str]]:
    console.close()
    return [(response.level, response.message) async for response in console]


@pytest.mark.unit
def test_parse_port_map() -> None:
    assert parse_port_map(["8080:80", "9090"]) == [
        PortMapping(local_port=8080, remote_port=80),
        PortMapping(local_port=9090, remote_port=9090),
    ]


@pytest.mark.unit
@pytest.mark.parametrize("entry", ["", "http:80", "8080:", ":80", "0:80", "8080:70000", "1:2:3"])
def test_parse_port_map_rejects_bad_entries(entry: str) -> None:
    with pytest.raises(PortMapError):
        parse_port_map([entry])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_defaults_to_discovered_ports() -> None:
    forwarder = AsyncMock()
    exposer = ServiceExposer(_discovery(WEB), forwarder)
    console = ConsoleStream()

    await exposer.expose(
        v1_pb2.ExposeServiceRequest(namespace="default", service="web"), console
    )

    forwarder.forward.assert_awaited_once()
    service, mappings, _ = forwarder.forward.await_args.args
    assert service == WEB
    assert mappings == [
        PortMapping(local_port=8080, remote_port=80),
        PortMapping(local_port=9090, remote_port=9090),
    ]
    assert "default/web" in exposer.active
    messages = await _messages(console)
    assert all(level == v1_pb2.CONSOLE_LEVEL_INFO for level, _ in messages)
    assert messages[-1][1] == "exposed service default/web"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_uses_requested_port_map() -> None:
    forwarder = AsyncMock()
    exposer = ServiceExposer(_discovery(WEB), forwarder)

    await exposer.expose(
        v1_pb2.ExposeServiceRequest(namespace="default", service="web", port_map=["3000:80"]),
        ConsoleStream(),
    )

    _, mappings, _ = forwarder.forward.await_args.args
    assert mappings == [PortMapping(local_port=3000, remote_port=80)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_rejects_undeclared_remote_port() -> None:
    exposer = ServiceExposer(_discovery(WEB), AsyncMock())

    with pytest.raises(PortMapError, match="does not declare port 443"):
        await exposer.expose(
            v1_pb2.ExposeServiceRequest(namespace="default", service="web", port_map=["443"]),
            ConsoleStream(),
        )
    assert exposer.active == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_rejects_duplicate_local_port() -> None:
    exposer = ServiceExposer(_discovery(WEB), AsyncMock())

    with pytest.raises(PortMapError, match="mapped twice"):
        await exposer.expose(
            v1_pb2.ExposeServiceRequest(
                namespace="default", service="web", port_map=["8000:80", "8000:9090"]
            ),
            ConsoleStream(),
        )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_unknown_service() -> None:
    exposer = ServiceExposer(_discovery(WEB), AsyncMock())

    with pytest.raises(ServiceNotFoundError, match="default/api"):
        await exposer.expose(
            v1_pb2.ExposeServiceRequest(namespace="default", service="api"), ConsoleStream()
        )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_requires_namespace_and_service() -> None:
    exposer = ServiceExposer(_discovery(WEB), AsyncMock())

    with pytest.raises(ExposeError, match="required"):
        await exposer.expose(v1_pb2.ExposeServiceRequest(service="web"), ConsoleStream())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_propagates_discovery_failure() -> None:
    discovery = AsyncMock()
    discovery.discover.side_effect = DiscoveryError("failed to retrieve services")
    exposer = ServiceExposer(discovery, AsyncMock())

    with pytest.raises(DiscoveryError):
        await exposer.expose(
            v1_pb2.ExposeServiceRequest(namespace="default", service="web"), ConsoleStream()
        )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expose_bounds_discovery_with_timeout() -> None:
    async def never_finishes():
        await asyncio.Event().wait()

    discovery = AsyncMock()
    discovery.discover.side_effect = never_finishes
    exposer = ServiceExposer(discovery, AsyncMock(), discovery_timeout=0.01)

    with pytest.raises(ExposeError, match="did not finish"):
        await exposer.expose(
            v1_pb2.ExposeServiceRequest(namespace="default", service="web"), ConsoleStream()
        )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_second_expose_warns() -> None:
    forwarder = AsyncMock()
    exposer = ServiceExposer(_discovery(WEB), forwarder)
    request = v1_pb2.ExposeServiceRequest(namespace="default", service="web")
    await exposer.expose(request, ConsoleStream())

    console = ConsoleStream()
    await exposer.expose(request, console)

    assert forwarder.forward.await_count == 1
    assert await _messages(console) == [
        (v1_pb2.CONSOLE_LEVEL_WARN, "service default/web is already exposed")
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stop_releases_active_exposure() -> None:
    forwarder = AsyncMock()
    exposer = ServiceExposer(_discovery(WEB), forwarder)
    await exposer.expose(
        v1_pb2.ExposeServiceRequest(namespace="default", service="web"), ConsoleStream()
    )

    console = ConsoleStream()
    await exposer.stop(v1_pb2.StopExposeRequest(namespace="default", service="web"), console)

    forwarder.release.assert_awaited_once()
    assert exposer.active == {}
    assert (await _messages(console))[-1] == (
        v1_pb2.CONSOLE_LEVEL_INFO,
        "stopped exposing service default/web",
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_release_keeps_exposure_for_retry() -> None:
    forwarder = AsyncMock()
    forwarder.release.side_effect = [OSError("tunnel busy"), None]
    exposer = ServiceExposer(_discovery(WEB), forwarder)
    await exposer.expose(
        v1_pb2.ExposeServiceRequest(namespace="default", service="web"), ConsoleStream()
    )
    request = v1_pb2.StopExposeRequest(namespace="default", service="web")

    with pytest.raises(OSError, match="tunnel busy"):
        await exposer.stop(request, ConsoleStream())

    assert "default/web" in exposer.active

    await exposer.stop(request, ConsoleStream())

    assert forwarder.release.await_count == 2
    assert exposer.active == {}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stop_unexposed_service_warns() -> None:
    forwarder = AsyncMock()
    exposer = ServiceExposer(_discovery(WEB), forwarder)
    console = ConsoleStream()

    await exposer.stop(v1_pb2.StopExposeRequest(namespace="default", service="web"), console)

    forwarder.release.assert_not_awaited()
    assert await _messages(console) == [
        (v1_pb2.CONSOLE_LEVEL_WARN, "service default/web is not exposed")
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dry_run_forwarder_reports_each_mapping() -> None:
    console = ConsoleStream()
    mappings = [PortMapping(local_port=8080, remote_port=80)]

    await DryRunForwarder().forward(WEB, mappings, console)
    await DryRunForwarder().release(WEB, mappings, console)

    assert [message for _, message in await _messages(console)] == [
        "dry run: would forward 127.0.0.1:8080 -> default/web:80",
        "dry run: would stop forwarding 127.0.0.1:8080",
    ]
