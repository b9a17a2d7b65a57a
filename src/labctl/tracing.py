"""OpenTelemetry tracer for one labctl process run.

Enabled by setting LABCTL_TRACE_ENDPOINT to an OTLP/HTTP collector URL
(e.g. ``http://localhost:4318/v1/traces``). When unset, spans come from the
no-op tracer: nothing is exported and :meth:`Tracer.close` does nothing.

The tracer is an explicit value built once by ``labctl.cli.main`` and
passed to the command tree instrumenter. No global tracer provider is
installed.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

TRACE_ENDPOINT_ENV = "LABCTL_TRACE_ENDPOINT"
SERVICE_NAME = "labctl"


class Tracer:
    """A span factory paired with the provider that exports its spans."""

    def __init__(self, provider: TracerProvider | None = None) -> None:
        self._provider = provider
        if provider is None:
            self._tracer: trace.Tracer = trace.NoOpTracer()
        else:
            self._tracer = provider.get_tracer(SERVICE_NAME)
        self._closed = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Tracer:
        """Build a tracer from LABCTL_TRACE_ENDPOINT, or a no-op one."""
        env = os.environ if environ is None else environ
        endpoint = env.get(TRACE_ENDPOINT_ENV, "").strip()
        if not endpoint:
            return cls()

        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        provider = TracerProvider(
            resource=Resource.create({"service.name": SERVICE_NAME})
        )
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        return cls(provider)

    @property
    def enabled(self) -> bool:
        return self._provider is not None

    def start_span(self, name: str) -> trace.Span:
        return self._tracer.start_span(name)

    def close(self) -> None:
        """Flush and shut down the exporter. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._provider is not None:
            self._provider.shutdown()
