"""labctl CLI -- terminal interface to the lab's agents and apps.

The command tree is built fresh by :func:`new_app` and instrumented once
before it runs. It is only loaded via the ``labctl`` entry point defined in
pyproject.toml.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click
import httpx

from labctl._version import __version__
from labctl.cli.commands.debug import debug_command
from labctl.cli.formatting import format_error, get_console
from labctl.config import get_config
from labctl.exceptions import LabctlError
from labctl.instrument import LabGroup, wire_app
from labctl.logs import LOG_WRITERS
from labctl.tracing import Tracer


class LabctlGroup(LabGroup):
    """Root group. Reports labctl errors on stderr and exits with status 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except LabctlError as e:
            format_error(str(e), get_console(stderr=True))
            ctx.exit(1)


def _new_root() -> LabctlGroup:
    @click.group(cls=LabctlGroup)
    @click.option(
        "--log-level",
        default="info",
        show_default=True,
        envvar="LABCTL_LOG_LEVEL",
        help="Log level: trace, debug, info, warn, error, fatal, panic or disabled.",
    )
    @click.option(
        "--log-writer",
        default="console",
        show_default=True,
        envvar="LABCTL_LOG_WRITER",
        help=f"Log writer: {' or '.join(LOG_WRITERS)}.",
    )
    @click.option(
        "--output",
        default="unix",
        show_default=True,
        envvar="LABCTL_OUTPUT",
        help="Output format: unix or json.",
    )
    @click.option(
        "--timeout",
        type=float,
        default=None,
        envvar="LABCTL_TIMEOUT",
        help="Cancel remote calls after this many seconds.",
    )
    @click.version_option(__version__, prog_name="labctl")
    @click.pass_context
    def labctl(ctx: click.Context, **_: Any) -> None:
        """labctl: control plane for the lab's agents and apps."""
        get_config(ctx)

    return labctl


def new_app(
    tracer: Tracer,
    *,
    argv: Sequence[str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> LabctlGroup:
    """Build and instrument the labctl command tree.

    Args:
        tracer: Tracer for command spans; closed by the tree's teardown.
        argv: Command line recorded on spans. Defaults to ``sys.argv``.
        transport: httpx transport for the HTTP client (tests pass a
            MockTransport).
    """
    app = _new_root()
    app.add_command(debug_command())

    wire_app(app, tracer, argv, transport)
    return app


def main() -> None:
    """Console entry point."""
    app = new_app(Tracer.from_env())
    app(prog_name="labctl")
