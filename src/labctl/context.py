"""Per-invocation execution context and capability store.

An :class:`Invocation` is the bag of capabilities (execution context, log
writer, printer, HTTP client) that lifecycle hooks fill in before a command
body runs. It lives in the root click context's ``meta`` dict, so every
command in the tree sees the same one and it becomes unreachable once the
root context is torn down.

Handlers do not read the string-keyed store. They receive a frozen
:class:`Capabilities` value assembled once all hooks have run.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import update_wrapper
from typing import TYPE_CHECKING, Any, TypeVar

import click

from labctl.exceptions import (
    Cancelled,
    CapabilityNotFound,
    CapabilityTypeMismatch,
    DuplicateCapability,
)
from labctl.httputil import Client
from labctl.printer import Printer

if TYPE_CHECKING:
    import logging

    from opentelemetry.context import Context as TraceContext
    from opentelemetry.trace import Span

T = TypeVar("T")

CONTEXT = "context"
LOG_WRITER = "log_writer"
PRINTER = "printer"
CLIENT = "client"

_META_KEY = "labctl.invocation"

# Timers may fire slightly before the deadline they were armed for.
DEADLINE_SLACK = 0.01


@dataclass
class ExecutionContext:
    """Cancellation, deadline, tracing span and bound logger for one invocation.

    Every remote call receives this value and checks it before issuing a
    request, so cancelling it (or letting the deadline pass) aborts all
    further remote work with :class:`~labctl.exceptions.Cancelled`.
    """

    span: Span
    trace_context: TraceContext
    logger: logging.LoggerAdapter
    deadline: float | None = None  # time.monotonic() value; None = no deadline
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        """True once the deadline is reached, give or take DEADLINE_SLACK."""
        if self.deadline is None:
            return False
        return time.monotonic() >= self.deadline - DEADLINE_SLACK

    def check(self) -> None:
        """Raise Cancelled if the context was cancelled or has expired."""
        if self._cancelled.is_set():
            raise Cancelled("invocation cancelled")
        if self.expired:
            raise Cancelled("invocation deadline exceeded")


@dataclass(frozen=True)
class Capabilities:
    """Typed view of the capabilities a command body may use."""

    context: ExecutionContext
    printer: Printer
    client: Client


class Invocation:
    """Capability store for one running command. Write-once per key."""

    def __init__(self) -> None:
        self._capabilities: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        """Store a capability.

        Raises:
            DuplicateCapability: If ``key`` was already set.
        """
        if key in self._capabilities:
            raise DuplicateCapability(key)
        self._capabilities[key] = value

    def get(self, key: str, expected: type[T]) -> T:
        """Read a capability, checking its type.

        Raises:
            CapabilityNotFound: If no hook has set ``key``.
            CapabilityTypeMismatch: If the value is not an ``expected``.
        """
        try:
            value = self._capabilities[key]
        except KeyError:
            raise CapabilityNotFound(key) from None
        if not isinstance(value, expected):
            raise CapabilityTypeMismatch(key, expected, type(value))
        return value

    def has(self, key: str) -> bool:
        return key in self._capabilities

    def capabilities(self) -> Capabilities:
        return Capabilities(
            context=self.get(CONTEXT, ExecutionContext),
            printer=self.get(PRINTER, Printer),
            client=self.get(CLIENT, Client),
        )


def get_invocation(ctx: click.Context) -> Invocation:
    """Return the Invocation shared by the whole command tree of ``ctx``."""
    meta = ctx.find_root().meta
    invocation = meta.get(_META_KEY)
    if invocation is None:
        invocation = Invocation()
        meta[_META_KEY] = invocation
    return invocation


def pass_capabilities(f: Callable[..., T]) -> Callable[..., T]:
    """Like :func:`click.pass_obj`, but passes the invocation's Capabilities."""

    def new_func(*args: Any, **kwargs: Any) -> T:
        ctx = click.get_current_context()
        return f(get_invocation(ctx).capabilities(), *args, **kwargs)

    return update_wrapper(new_func, f)
