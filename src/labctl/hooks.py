"""Lifecycle hooks that set up and tear down an invocation's capabilities.

A hook is a callable taking the click context. Hooks are composed into a
:class:`HookChain`, an ordered list of named stages run in a loop:

- a before chain stops at the first hook that raises, so later hooks and
  the command body never run;
- a teardown chain (``run_all=True``) runs every stage and re-raises the
  first error once all of them have run.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass

import click
import httpx
from opentelemetry import trace

from labctl.config import get_config
from labctl.context import (
    CLIENT,
    CONTEXT,
    LOG_WRITER,
    PRINTER,
    ExecutionContext,
    get_invocation,
)
from labctl.exceptions import ClientInitError, InvalidArgument
from labctl.httputil import Client
from labctl.logs import new_logger
from labctl.printer import new_printer
from labctl.tracing import Tracer

logger = logging.getLogger(__name__)

Hook = Callable[[click.Context], None]


@dataclass(frozen=True)
class Stage:
    """One named step of a hook chain. A stage with no hook is skipped."""

    name: str
    hook: Hook | None


def _hook_name(hook: Hook) -> str:
    return getattr(hook, "__name__", None) or repr(hook)


class HookChain:
    """Immutable ordered sequence of hook stages."""

    def __init__(self, stages: Iterable[Stage] = (), *, run_all: bool = False) -> None:
        self._stages: tuple[Stage, ...] = tuple(stages)
        self.run_all = run_all

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    @property
    def names(self) -> list[str]:
        return [stage.name for stage in self._stages]

    def then(self, hook: Hook | None, name: str | None = None) -> HookChain:
        """Return a new chain with ``hook`` appended."""
        if isinstance(hook, HookChain) and hook.run_all == self.run_all:
            return HookChain(self._stages + hook.stages, run_all=self.run_all)
        stage = Stage(name or (_hook_name(hook) if hook is not None else "<none>"), hook)
        return HookChain(self._stages + (stage,), run_all=self.run_all)

    def __add__(self, other: HookChain) -> HookChain:
        if not isinstance(other, HookChain):
            return NotImplemented
        return self.then(other)

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages)

    def __repr__(self) -> str:
        mode = "teardown" if self.run_all else "before"
        return f"HookChain({mode}, {self.names})"

    def __call__(self, ctx: click.Context) -> None:
        if not self.run_all:
            for stage in self._stages:
                if stage.hook is not None:
                    stage.hook(ctx)
            return

        first: Exception | None = None
        for stage in self._stages:
            if stage.hook is None:
                continue
            try:
                stage.hook(ctx)
            except Exception as exc:
                if first is None:
                    first = exc
                else:
                    logger.warning("teardown stage %s failed: %s", stage.name, exc)
        if first is not None:
            raise first


def join_hooks(*hooks: Hook | None, run_all: bool = False) -> HookChain:
    """Compose hooks in order. Nested chains are flattened and None is skipped."""
    chain = HookChain(run_all=run_all)
    for hook in hooks:
        if hook is None:
            continue
        chain = chain.then(hook)
    return chain


def tracing_hook(tracer: Tracer, name: str, argv: Sequence[str] | None = None) -> Hook:
    """Build the hook that opens the invocation span and structured logger.

    Publishes the ``context`` and ``log_writer`` capabilities. If the
    invocation already has an execution context, it is reused as is.

    Raises (when run):
        ConfigurationError: For an unknown log writer or log level.
    """

    def trace_command(ctx: click.Context) -> None:
        invocation = get_invocation(ctx)
        if invocation.has(CONTEXT):
            return

        config = get_config(ctx)
        command_logger, writer = new_logger(config.log_writer, config.log_level)

        span = tracer.start_span(name)
        span.set_attribute("command", " ".join(sys.argv if argv is None else argv))

        span_context = span.get_span_context()
        trace_id = trace.format_trace_id(span_context.trace_id) if span_context.is_valid else ""
        bound = logging.LoggerAdapter(command_logger, {"command": name, "trace_id": trace_id})

        deadline = time.monotonic() + config.timeout if config.timeout else None
        invocation.set(
            CONTEXT,
            ExecutionContext(
                span=span,
                trace_context=trace.set_span_in_context(span),
                logger=bound,
                deadline=deadline,
            ),
        )
        invocation.set(LOG_WRITER, writer)

    trace_command.__name__ = f"trace:{name}"
    return trace_command


def printer_hook(ctx: click.Context) -> None:
    """Publish the printer selected by ``--output``."""
    output = get_config(ctx).output
    try:
        printer = new_printer(output)
    except ValueError:
        raise InvalidArgument(f"output {output!r} is not valid") from None
    get_invocation(ctx).set(PRINTER, printer)


def client_hook(transport: httpx.BaseTransport | None = None) -> Hook:
    """Build the hook that publishes the HTTP client.

    With ``--log-level debug`` the client logs every request and response.

    Raises (when run):
        ClientInitError: If the client cannot be constructed.
    """

    def build_client(ctx: click.Context) -> None:
        config = get_config(ctx)
        request_logger = None
        if config.debug:
            request_logger, _ = new_logger(
                config.log_writer, config.log_level, name="labctl.http"
            )
        try:
            client = Client(request_logger=request_logger, transport=transport)
        except (OSError, ValueError) as exc:
            raise ClientInitError(f"cannot create HTTP client: {exc}") from exc
        get_invocation(ctx).set(CLIENT, client)

    return build_client


def teardown_hook(tracer: Tracer) -> HookChain:
    """Build the teardown chain: end the span, close the client, close the tracer.

    Every step runs even if an earlier one fails.
    """

    def end_span(ctx: click.Context) -> None:
        invocation = get_invocation(ctx)
        if invocation.has(CONTEXT):
            invocation.get(CONTEXT, ExecutionContext).span.end()

    def close_client(ctx: click.Context) -> None:
        invocation = get_invocation(ctx)
        if invocation.has(CLIENT):
            invocation.get(CLIENT, Client).close()

    def close_tracer(ctx: click.Context) -> None:
        tracer.close()

    return join_hooks(end_span, close_client, close_tracer, run_all=True)
