import asyncio

import pytest

from localizer.api.v1 import v1_pb2
from localizer.console import ConsoleClosedError, ConsoleStream


async def _drain(console: ConsoleStream) -> list[tuple[int, str]]:
    return [(response.level, response.message) async for response in console]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_messages_are_delivered_in_order_until_close() -> None:
    console = ConsoleStream()
    await console.info("starting")
    await console.warn("slow")
    await console.error("failed")
    console.close()

    assert await _drain(console) == [
        (v1_pb2.CONSOLE_LEVEL_INFO, "starting"),
        (v1_pb2.CONSOLE_LEVEL_WARN, "slow"),
        (v1_pb2.CONSOLE_LEVEL_ERROR, "failed"),
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unspecified_level_is_refused() -> None:
    console = ConsoleStream()

    with pytest.raises(ValueError):
        await console.emit(v1_pb2.CONSOLE_LEVEL_UNSPECIFIED, "nope")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_emit_after_close_raises() -> None:
    console = ConsoleStream()
    console.close()
    console.close()

    assert console.closed
    with pytest.raises(ConsoleClosedError):
        await console.info("late")
    assert await _drain(console) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_bounded_queue_applies_backpressure() -> None:
    console = ConsoleStream(maxsize=1)
    await console.info("first")

    blocked = asyncio.create_task(console.info("second"))
    await asyncio.sleep(0)
    assert not blocked.done()

    received = []
    async for response in console:
        received.append(response.message)
        if len(received) == 2:
            break
    await blocked

    assert received == ["first", "second"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_with_full_queue_still_drains() -> None:
    console = ConsoleStream(maxsize=2)
    await console.info("one")
    await console.info("two")
    console.close()

    assert [message for _, message in await _drain(console)] == ["one", "two"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_consumer_waits_for_producer() -> None:
    console = ConsoleStream()

    async def produce() -> None:
        await asyncio.sleep(0.01)
        await console.info("ready")
        console.close()

    producer = asyncio.create_task(produce())
    messages = await _drain(console)
    await producer

    assert messages == [(v1_pb2.CONSOLE_LEVEL_INFO, "ready")]
