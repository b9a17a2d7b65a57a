"""Address resolution and request plumbing shared by Agent and App."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import httpx

from labctl.exceptions import InvalidArgument, RemoteError
from labctl.httputil import Client

if TYPE_CHECKING:
    from labctl.context import ExecutionContext


def validate_address(address: str) -> str:
    """Check that ``address`` is an absolute http(s) URL and normalize it.

    Raises:
        InvalidArgument: If the address is not a usable endpoint reference.
    """
    try:
        parts = urlsplit(address.strip())
    except ValueError:
        raise InvalidArgument(f"invalid address {address!r}: malformed URL") from None
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise InvalidArgument(f"invalid address {address!r}: expected http(s)://host[:port]")
    try:
        parts.port
    except ValueError:
        raise InvalidArgument(f"invalid address {address!r}: bad port") from None
    return address.strip().rstrip("/")


@dataclass(frozen=True)
class RemoteService:
    """Base address of a lab service plus the client used to reach it."""

    address: str
    client: Client

    def url(self, path: str) -> str:
        return f"{self.address}/{path.lstrip('/')}"

    def _send(
        self,
        ctx: ExecutionContext,
        operation: str,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Issue one request, mapping transport failures to RemoteError."""
        url = self.url(path)
        ctx.logger.debug("%s: %s %s", operation, method, url)
        try:
            return self.client.request(ctx, method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteError(operation, url, str(exc) or type(exc).__name__) from exc

    @staticmethod
    def _raise_for_status(operation: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        raise RemoteError(
            operation,
            str(response.request.url),
            response.text.strip() or response.reason_phrase,
            status_code=response.status_code,
        )

    def healthcheck(self, ctx: ExecutionContext) -> bool:
        """Best-effort liveness probe. Never raises; any failure is False."""
        try:
            response = self._send(ctx, "healthcheck", "GET", "/healthcheck")
        except Exception as exc:
            ctx.logger.debug("healthcheck %s failed: %s", self.address, exc)
            return False
        return response.is_success
