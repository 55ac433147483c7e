"""Shared fixtures for localizer tests."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

import pytest

from localizer.discovery import DeclaredPort, ServicePage, ServiceResource


class FakeLister:
    """Scripted ``ServiceLister``: each call returns (or raises) the next response."""

    def __init__(self, responses: Sequence[ServicePage | BaseException]) -> None:
        self._responses = list(responses)
        self.tokens: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.tokens)

    async def list_services(self, continue_token: str) -> ServicePage:
        self.tokens.append(continue_token)
        if not self._responses:
            raise AssertionError("backend queried more times than scripted")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


def make_resource(
    name: str,
    namespace: str = "default",
    ports: Sequence[tuple[str, int]] = (("http", 80),),
    annotations: Mapping[str, str] | None = None,
) -> ServiceResource:
    return ServiceResource(
        name=name,
        namespace=namespace,
        ports=tuple(DeclaredPort(name=port_name, port=port) for port_name, port in ports),
        annotations=dict(annotations or {}),
    )


def make_page(*names: str, continue_token: str = "") -> ServicePage:
    return ServicePage(
        items=tuple(make_resource(name) for name in names),
        continue_token=continue_token,
    )


@pytest.fixture
def fake_lister() -> Callable[..., FakeLister]:
    return FakeLister


@pytest.fixture
def resource() -> Callable[..., ServiceResource]:
    return make_resource


@pytest.fixture
def page() -> Callable[..., ServicePage]:
    return make_page
