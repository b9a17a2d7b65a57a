"""Sync httpx client shared by the remote service facade.

Connection failures are retried with tenacity exponential backoff. A
response, whatever its status, is returned as-is and never retried; the
facade decides what a status means.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
import tenacity
from opentelemetry import propagate

from labctl.exceptions import Cancelled

if TYPE_CHECKING:
    from labctl.context import ExecutionContext

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


class Client:
    """HTTP client bound to an invocation's execution context.

    Usage::

        client = Client()
        response = client.request(ctx, "GET", "http://localhost:7003/healthcheck")
        client.close()
    """

    def __init__(
        self,
        http: httpx.Client | None = None,
        *,
        request_logger: logging.Logger | logging.LoggerAdapter | None = None,
        max_retries: int = 3,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            http: Pre-built httpx client. Built from ``timeout`` and
                ``transport`` when omitted.
            request_logger: When set, every request and response is logged
                at debug level through it.
            max_retries: Attempts for connection-level failures.
            timeout: Default per-request timeout in seconds.
            transport: Custom httpx transport (tests use MockTransport).
        """
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self._max_retries = max_retries
        self._timeout = timeout
        self._http = http or httpx.Client(timeout=timeout, transport=transport)
        self._request_logger = request_logger
        if request_logger is not None:
            self._http.event_hooks["request"].append(self._log_request)
            self._http.event_hooks["response"].append(self._log_response)

    def _log_request(self, request: httpx.Request) -> None:
        self._request_logger.debug("%s %s", request.method, request.url)

    def _log_response(self, response: httpx.Response) -> None:
        request = response.request
        self._request_logger.debug(
            "%s %s -> %d", request.method, request.url, response.status_code
        )

    def request(
        self,
        ctx: ExecutionContext,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request on behalf of ``ctx``.

        The remaining deadline of ``ctx`` caps the request timeout, and the
        W3C trace context of its span is sent along.

        Raises:
            Cancelled: If ``ctx`` is cancelled, its deadline passes, or the
                user interrupts the request.
            httpx.HTTPError: On transport failure after retries.
        """
        headers = dict(kwargs.pop("headers", None) or {})
        propagate.inject(headers, context=ctx.trace_context)

        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=tenacity.wait_exponential(multiplier=0.2, min=0.2, max=5),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retryer(self._send, ctx, method, url, headers=headers, **kwargs)
        except KeyboardInterrupt:
            ctx.cancel()
            raise Cancelled("interrupted") from None
        except httpx.TimeoutException:
            if ctx.expired:
                raise Cancelled("invocation deadline exceeded") from None
            raise

    def _send(
        self,
        ctx: ExecutionContext,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        ctx.check()
        remaining = ctx.remaining()
        timeout = self._timeout if remaining is None else min(self._timeout, remaining)
        return self._http.request(method, url, timeout=timeout, **kwargs)

    def close(self) -> None:
        self._http.close()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
