"""Shared test fixtures for labctl.

Provides an in-memory OpenTelemetry tracer, execution contexts, and
httpx MockTransport-backed clients.
"""

from __future__ import annotations

import io
import logging

import httpx
import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from rich.console import Console

from labctl.context import Capabilities, ExecutionContext
from labctl.httputil import Client
from labctl.printer import UnixPrinter
from labctl.tracing import Tracer


class CountingTracer(Tracer):
    """Tracer that records how many times it was closed."""

    def __init__(self, provider: TracerProvider | None = None) -> None:
        super().__init__(provider)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def sdk_tracer(span_exporter: InMemorySpanExporter) -> CountingTracer:
    """Tracer exporting synchronously to an in-memory exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return CountingTracer(provider)


@pytest.fixture
def noop_tracer() -> CountingTracer:
    return CountingTracer()


def make_context(span: trace.Span | None = None, **kwargs) -> ExecutionContext:
    """Build an ExecutionContext around ``span`` (the invalid span by default)."""
    span = span or trace.INVALID_SPAN
    return ExecutionContext(
        span=span,
        trace_context=trace.set_span_in_context(span),
        logger=logging.LoggerAdapter(logging.getLogger("labctl.test"), {"command": "test"}),
        **kwargs,
    )


def make_client(handler, **kwargs) -> tuple[Client, RecordingTransport]:
    """Create a Client over a RecordingTransport, without retry delays."""
    transport = RecordingTransport(handler)
    kwargs.setdefault("max_retries", 1)
    return Client(transport=transport, **kwargs), transport


def make_capabilities(handler) -> tuple[Capabilities, RecordingTransport, io.StringIO]:
    """Capabilities with a mock client and a unix printer writing to a buffer."""
    client, transport = make_client(handler)
    out = io.StringIO()
    printer = UnixPrinter(Console(file=out, soft_wrap=True))
    return Capabilities(context=make_context(), printer=printer, client=client), transport, out
