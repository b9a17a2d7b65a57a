"""Tests for the debug command handlers, called without click."""

from __future__ import annotations

import json
import logging
import time

import httpx
import pytest

from labctl.actions import peer_info, run_task, update_agent
from labctl.exceptions import (
    Cancelled,
    InvalidArgument,
    PostUpdateUnhealthy,
    RemoteError,
    RemoteTaskRejected,
    RemoteUnhealthy,
)
from tests.conftest import make_capabilities


def _lab(update_status: int = 200, health_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/update":
            return httpx.Response(update_status, text="update failed" if update_status >= 400 else "")
        if request.url.path == "/healthcheck":
            return httpx.Response(health_status)
        return httpx.Response(404)

    return handler


class TestUpdateAgent:
    def test_update_then_healthy(self, caplog):
        caps, transport, _ = make_capabilities(_lab())
        with caplog.at_level(logging.INFO, logger="labctl.test"):
            update_agent(caps, "http://a", "http://b", "http://bin/labapp")

        assert [(r.method, r.url.host, r.url.path) for r in transport.requests] == [
            ("POST", "a", "/update"),
            ("GET", "b", "/healthcheck"),
        ]
        assert "Labapp healthy" in caplog.text

    def test_unhealthy_after_successful_update(self):
        caps, transport, _ = make_capabilities(_lab(health_status=503))
        with pytest.raises(PostUpdateUnhealthy) as exc_info:
            update_agent(caps, "http://a", "http://b")

        assert isinstance(exc_info.value, RemoteUnhealthy)
        assert not isinstance(exc_info.value, RemoteError)
        assert exc_info.value.app_addr == "http://b"
        # The update itself went through.
        assert transport.requests[0].url.path == "/update"

    def test_failed_update_skips_healthcheck(self):
        caps, transport, _ = make_capabilities(_lab(update_status=500))
        with pytest.raises(RemoteError, match="update failed"):
            update_agent(caps, "http://a", "http://b")
        assert [r.url.path for r in transport.requests] == ["/update"]

    def test_interrupted_healthcheck_is_cancelled(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/healthcheck":
                raise KeyboardInterrupt
            return httpx.Response(200)

        caps, transport, _ = make_capabilities(handler)
        with pytest.raises(Cancelled, match="cancelled"):
            update_agent(caps, "http://a", "http://b")
        assert [r.url.path for r in transport.requests] == ["/update", "/healthcheck"]

    def test_healthcheck_past_deadline_is_cancelled(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/update":
                time.sleep(0.1)
            return httpx.Response(200)

        caps, transport, _ = make_capabilities(handler)
        caps.context.deadline = time.monotonic() + 0.05
        with pytest.raises(Cancelled, match="deadline"):
            update_agent(caps, "http://a", "http://b")
        # The deadline passed during the update; the healthcheck never went out.
        assert [r.url.path for r in transport.requests] == ["/update"]

    def test_bad_agent_address(self):
        caps, transport, _ = make_capabilities(_lab())
        with pytest.raises(InvalidArgument):
            update_agent(caps, "not-a-url", "http://b")
        assert transport.requests == []


class TestPeerInfo:
    def test_prints_peer_info(self):
        body = {"ID": "QmPeer", "Addrs": ["/ip4/127.0.0.1/tcp/4001"]}
        caps, _, out = make_capabilities(lambda r: httpx.Response(200, json=body))
        peer_info(caps, "http://b")
        assert out.getvalue().splitlines() == ["ID\tQmPeer", "Addrs\t/ip4/127.0.0.1/tcp/4001"]

    def test_remote_error_prints_nothing(self):
        caps, _, out = make_capabilities(lambda r: httpx.Response(500))
        with pytest.raises(RemoteError):
            peer_info(caps, "http://b")
        assert out.getvalue() == ""


class TestRunTask:
    @pytest.mark.parametrize("args", [(), ("get",), ("get", "QmCid", "extra")])
    def test_wrong_arg_count_makes_no_call(self, args):
        caps, transport, _ = make_capabilities(lambda r: httpx.Response(200))
        with pytest.raises(InvalidArgument, match="task type and subject"):
            run_task(caps, "http://b", args)
        assert transport.requests == []

    def test_runs_task(self):
        caps, transport, _ = make_capabilities(lambda r: httpx.Response(200))
        run_task(caps, "http://b", ("get", "QmCid"))
        assert json.loads(transport.requests[0].content) == {"type": "get", "subject": "QmCid"}

    def test_rejected_not_retried(self):
        caps, transport, _ = make_capabilities(
            lambda r: httpx.Response(400, text="invalid subject")
        )
        with pytest.raises(RemoteTaskRejected, match="invalid subject"):
            run_task(caps, "http://b", ("get", "???"))
        assert len(transport.requests) == 1
