"""gRPC servicer streaming leveled console output for expose/stop operations."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing, suppress
from typing import Any

import grpc
import structlog
from opentelemetry import trace

from localizer.api.v1 import v1_pb2, v1_pb2_grpc
from localizer.console import DEFAULT_BUFFER_SIZE, ConsoleStream
from localizer.errors import LocalizerError
from localizer.observability import metrics

from .exposer import Exposer

logger = structlog.get_logger(__name__)

Operation = Callable[[Any, ConsoleStream], Awaitable[None]]


class LocalizerService(v1_pb2_grpc.LocalizerServiceServicer):
    """Runs each call as its own task and relays its console output.

    Expected failures end the stream with an ERROR line. Anything else is
    reported the same way and then aborts the call with ``INTERNAL``.
    Cancelling the call cancels the operation.
    """

    def __init__(self, exposer: Exposer, console_buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._exposer = exposer
        self._console_buffer_size = console_buffer_size
        self._tracer = trace.get_tracer(__name__)

    async def ExposeService(
        self,
        request: v1_pb2.ExposeServiceRequest,
        context: grpc.aio.ServicerContext,
    ) -> AsyncIterator[v1_pb2.ConsoleResponse]:
        async with aclosing(
            self._stream("ExposeService", self._exposer.expose, request, context)
        ) as responses:
            async for response in responses:
                yield response

    async def StopExpose(
        self,
        request: v1_pb2.StopExposeRequest,
        context: grpc.aio.ServicerContext,
    ) -> AsyncIterator[v1_pb2.ConsoleResponse]:
        async with aclosing(
            self._stream("StopExpose", self._exposer.stop, request, context)
        ) as responses:
            async for response in responses:
                yield response

    async def _stream(
        self,
        method: str,
        operation: Operation,
        request: Any,
        context: grpc.aio.ServicerContext,
    ) -> AsyncIterator[v1_pb2.ConsoleResponse]:
        console = ConsoleStream(maxsize=self._console_buffer_size)
        task = asyncio.create_task(self._run(method, operation, request, console))
        span = self._tracer.start_span(method)
        span.set_attribute("localizer.namespace", request.namespace)
        span.set_attribute("localizer.service", request.service)

        try:
            async for response in console:
                yield response
            outcome, failure = await task
        finally:
            if not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
                metrics.observe_stream(method, "cancelled")
                logger.info("console.stream.cancelled", method=method)
            span.end()

        metrics.observe_stream(method, outcome)
        if failure is not None:
            await context.abort(grpc.StatusCode.INTERNAL, f"{method} failed: {failure}")

    async def _run(
        self,
        method: str,
        operation: Operation,
        request: Any,
        console: ConsoleStream,
    ) -> tuple[str, Exception | None]:
        log = logger.bind(method=method, namespace=request.namespace, service=request.service)
        log.info("console.operation.started")
        try:
            await operation(request, console)
        except LocalizerError as e:
            log.warning("console.operation.failed", error=describe_error(e))
            await console.error(describe_error(e))
            return "error", None
        except Exception as e:
            log.exception("console.operation.crashed")
            await console.error(f"internal error: {e}")
            return "internal", e
        finally:
            console.close()

        log.info("console.operation.finished")
        return "ok", None


def describe_error(error: BaseException) -> str:
    """Render ``error`` with its chain of causes, outermost first."""
    parts = [str(error)]
    cause = error.__cause__
    while cause is not None:
        parts.append(str(cause))
        cause = cause.__cause__
    return ": ".join(part for part in parts if part)
