"""Facade for a labapp's HTTP API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError

from labctl.exceptions import RemoteError, RemoteTaskRejected
from labctl.remote.base import RemoteService, validate_address
from labctl.remote.models import PeerInfo, Task

if TYPE_CHECKING:
    from labctl.context import ExecutionContext
    from labctl.httputil import Client

# Statuses a labapp answers with when it refuses a task's type or subject.
_REJECTED_STATUS_CODES = {400, 422}


@dataclass(frozen=True)
class App(RemoteService):
    """A labapp, the process that runs benchmark tasks on a node."""

    def peer_info(self, ctx: ExecutionContext) -> PeerInfo:
        """Fetch the labapp's peer identity and addresses.

        Raises:
            RemoteError: On transport failure, non-2xx, or an undecodable body.
        """
        response = self._send(ctx, "peer-info", "GET", "/peerInfo")
        self._raise_for_status("peer-info", response)
        try:
            return PeerInfo.model_validate_json(response.content)
        except ValidationError as exc:
            raise RemoteError(
                "peer-info", str(response.request.url), f"bad response: {exc}"
            ) from exc

    def run(self, ctx: ExecutionContext, task: Task) -> None:
        """Dispatch ``task`` to the labapp.

        Raises:
            RemoteTaskRejected: If the labapp refuses the task type or subject.
            RemoteError: On transport failure or any other non-2xx response.
        """
        response = self._send(ctx, "run", "POST", "/run", json=task.model_dump())
        if response.status_code in _REJECTED_STATUS_CODES:
            raise RemoteTaskRejected(
                "run",
                str(response.request.url),
                response.text.strip() or response.reason_phrase,
                status_code=response.status_code,
            )
        self._raise_for_status("run", response)


def resolve_app(client: Client, address: str) -> App:
    """Return an App handle for ``address``. Performs no I/O.

    Raises:
        InvalidArgument: If ``address`` is not an http(s) URL.
    """
    return App(validate_address(address), client)
