"""Command bodies for the ``debug`` commands.

Each handler is plain orchestration over the remote facade and the
invocation's capabilities, so it can be called without click.
"""

from __future__ import annotations

from collections.abc import Sequence

from labctl.context import Capabilities
from labctl.exceptions import InvalidArgument, PostUpdateUnhealthy
from labctl.remote import Task, resolve_agent, resolve_app


def update_agent(caps: Capabilities, agent_addr: str, app_addr: str, url: str = "") -> None:
    """Update a labagent's binary, then verify its labapp came back healthy.

    A failed healthcheck is reported as PostUpdateUnhealthy even though the
    update itself succeeded. Nothing is rolled back. If the invocation was
    cancelled or ran out of time during the healthcheck, Cancelled is
    raised instead.
    """
    ctx = caps.context

    agent = resolve_agent(caps.client, agent_addr)
    agent.update(ctx, url)

    app = resolve_app(caps.client, app_addr)
    if not app.healthcheck(ctx):
        # A cancelled or expired invocation is not an unhealthy labapp.
        ctx.check()
        raise PostUpdateUnhealthy(app.address)

    ctx.logger.info("Labapp healthy")


def peer_info(caps: Capabilities, app_addr: str) -> None:
    """Print a labapp's peer info with the configured printer."""
    app = resolve_app(caps.client, app_addr)
    info = app.peer_info(caps.context)
    caps.printer.print(info)


def run_task(caps: Capabilities, app_addr: str, args: Sequence[str]) -> None:
    """Run a task given as ``(type, subject)`` positional arguments."""
    if len(args) != 2:
        raise InvalidArgument("task type and subject must be provided")

    app = resolve_app(caps.client, app_addr)
    app.run(caps.context, Task(type=args[0], subject=args[1]))
