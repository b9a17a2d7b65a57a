"""labctl debug -- hidden tools for poking at a single agent or app."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from labctl import actions
from labctl.config import DEFAULT_AGENT_ADDR, DEFAULT_APP_ADDR
from labctl.context import Capabilities, pass_capabilities
from labctl.instrument import LabGroup


def _app_addr_option(f: Callable[..., Any]) -> Callable[..., Any]:
    """Add the shared ``--app-addr`` option."""
    return click.option(
        "--app-addr",
        default=DEFAULT_APP_ADDR,
        show_default=True,
        help="Address for labapp's HTTP server.",
    )(f)


def debug_command() -> LabGroup:
    """Build a fresh ``debug`` command group."""

    @click.group(cls=LabGroup, hidden=True, aliases=["d"])
    def debug() -> None:
        """Debugging tools."""

    @debug.command(aliases=["u"])
    @click.option(
        "--agent-addr",
        default=DEFAULT_AGENT_ADDR,
        show_default=True,
        help="Address for labagent's HTTP server.",
    )
    @_app_addr_option
    @click.argument("url", required=False, default="")
    @pass_capabilities
    def update(caps: Capabilities, agent_addr: str, app_addr: str, url: str) -> None:
        """Updates a labagent to a binary retrievable by an url."""
        actions.update_agent(caps, agent_addr, app_addr, url)

    @debug.command(aliases=["p"])
    @_app_addr_option
    @pass_capabilities
    def peer(caps: Capabilities, app_addr: str) -> None:
        """Retrieves the peer info from a labapp."""
        actions.peer_info(caps, app_addr)

    @debug.command(aliases=["r"])
    @_app_addr_option
    @click.argument("args", nargs=-1, metavar="TYPE SUBJECT")
    @pass_capabilities
    def run(caps: Capabilities, app_addr: str, args: tuple[str, ...]) -> None:
        """Runs a task on a labapp."""
        actions.run_task(caps, app_addr, args)

    return debug
