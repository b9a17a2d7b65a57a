"""Facade for a labagent's HTTP API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from labctl.remote.base import RemoteService, validate_address

if TYPE_CHECKING:
    from labctl.context import ExecutionContext
    from labctl.httputil import Client


@dataclass(frozen=True)
class Agent(RemoteService):
    """A labagent, which supervises and updates the labapp binary on a node."""

    def update(self, ctx: ExecutionContext, url: str = "") -> None:
        """Replace the agent's labapp binary with the one at ``url``.

        An empty ``url`` lets the agent use its default source.

        Raises:
            RemoteError: On transport failure or a non-2xx response.
        """
        params = {"url": url} if url else None
        response = self._send(ctx, "update", "POST", "/update", params=params)
        self._raise_for_status("update", response)


def resolve_agent(client: Client, address: str) -> Agent:
    """Return an Agent handle for ``address``. Performs no I/O.

    Raises:
        InvalidArgument: If ``address`` is not an http(s) URL.
    """
    return Agent(validate_address(address), client)
