"""Command tree instrumentation.

click has no before/after hooks, so :class:`LabCommand` and
:class:`LabGroup` add them: a command runs its ``before`` hook right
before its callback, and a group runs its ``after`` hook once dispatch
returns, whether it returned normally or raised.

:func:`instrument` walks a tree of such commands and installs tracing and
logging on every leaf subcommand, plus teardown on the root, so command
authors never wire it by hand.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import click
import httpx

from labctl.hooks import (
    Hook,
    client_hook,
    join_hooks,
    printer_hook,
    teardown_hook,
    tracing_hook,
)
from labctl.tracing import Tracer

logger = logging.getLogger(__name__)


class LabCommand(click.Command):
    """A click command with a ``before`` hook run ahead of its callback."""

    def __init__(self, *args: Any, before: Hook | None = None, aliases: Sequence[str] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.before = before
        self.aliases = tuple(aliases)

    def invoke(self, ctx: click.Context) -> Any:
        if self.before is not None:
            self.before(ctx)
        return super().invoke(ctx)


class LabGroup(click.Group):
    """A click group with ``before``/``after`` hooks and command aliases.

    ``after`` runs once the dispatched subcommand returns or raises. When
    the subcommand already failed, an error from ``after`` is logged and the
    original error propagates.
    """

    command_class = LabCommand
    group_class = type  # subgroups are LabGroups too

    def __init__(
        self,
        *args: Any,
        before: Hook | None = None,
        after: Hook | None = None,
        aliases: Sequence[str] = (),
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.before = before
        self.after = after
        self.aliases = tuple(aliases)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        for candidate in self.commands.values():
            if cmd_name in getattr(candidate, "aliases", ()):
                return candidate
        return None

    def invoke(self, ctx: click.Context) -> Any:
        try:
            if self.before is not None:
                self.before(ctx)
            rv = super().invoke(ctx)
        except BaseException as exc:
            self._run_after(ctx, failed=exc)
            raise
        self._run_after(ctx)
        return rv

    def _run_after(self, ctx: click.Context, failed: BaseException | None = None) -> None:
        if self.after is None:
            return
        if failed is None:
            self.after(ctx)
            return
        try:
            self.after(ctx)
        except Exception as exc:
            logger.warning("after hook failed while handling %r: %s", failed, exc)


def _leaf_commands(group: click.Group, path: tuple[str, ...]) -> list[tuple[str, click.Command]]:
    leaves: list[tuple[str, click.Command]] = []
    for name, command in group.commands.items():
        if isinstance(command, click.Group):
            leaves.extend(_leaf_commands(command, path + (name,)))
        else:
            leaves.append((" ".join(path + (name,)), command))
    return leaves


def instrument(
    app: LabGroup,
    tracer: Tracer,
    argv: Sequence[str] | None = None,
) -> list[str]:
    """Install tracing/logging on every leaf subcommand and teardown on ``app``.

    Each leaf's before hook becomes (existing before, tracing hook). The
    root's after hook becomes a teardown chain (existing after, span end +
    client close + tracer close) whose steps all run even if one fails.

    Not idempotent: call it once, before any command runs. A tree with no
    subcommands is left untouched.

    Args:
        app: Root group of the command tree.
        tracer: Tracer whose spans the leaves open and which teardown closes.
        argv: Command line recorded on the span. Defaults to ``sys.argv``.

    Returns:
        Space-separated paths of the instrumented leaf commands.
    """
    leaves: list[tuple[str, click.Command]] = []
    for name, command in app.commands.items():
        if isinstance(command, click.Group):
            leaves.extend(_leaf_commands(command, (name,)))

    if not leaves:
        return []

    for path, command in leaves:
        if not isinstance(command, LabCommand):
            raise TypeError(f"cannot instrument {path!r}: not a LabCommand")
        command.before = join_hooks(command.before, tracing_hook(tracer, command.name, argv))

    app.after = join_hooks(app.after, teardown_hook(tracer), run_all=True)
    return [path for path, _ in leaves]


def attach_app_printer(app: LabGroup) -> None:
    """Append the printer hook to the root's before chain."""
    app.before = join_hooks(app.before, printer_hook)


def attach_app_client(app: LabGroup, transport: httpx.BaseTransport | None = None) -> None:
    """Append the HTTP client hook to the root's before chain."""
    app.before = join_hooks(app.before, client_hook(transport))


def wire_app(
    app: LabGroup,
    tracer: Tracer,
    argv: Sequence[str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> list[str]:
    """Attach the printer and client hooks to ``app`` and instrument it.

    The client hook is only attached when instrumentation found leaves,
    since the teardown that closes the client is installed alongside them.
    """
    attach_app_printer(app)
    paths = instrument(app, tracer, argv)
    if paths:
        attach_app_client(app, transport)
    return paths
