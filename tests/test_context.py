"""Tests for the per-invocation capability store and execution context."""

from __future__ import annotations

import time

import click
import httpx
import pytest

from labctl.context import (
    CLIENT,
    CONTEXT,
    DEADLINE_SLACK,
    PRINTER,
    Capabilities,
    ExecutionContext,
    Invocation,
    get_invocation,
    pass_capabilities,
)
from labctl.exceptions import (
    Cancelled,
    CapabilityError,
    CapabilityNotFound,
    CapabilityTypeMismatch,
    DuplicateCapability,
    LabctlError,
)
from labctl.printer import JSONPrinter, Printer
from tests.conftest import make_client, make_context


def _ok(request):
    return httpx.Response(200)


class TestInvocationStore:
    def test_set_then_get(self):
        inv = Invocation()
        printer = JSONPrinter()
        inv.set(PRINTER, printer)
        assert inv.get(PRINTER, Printer) is printer

    def test_get_missing_raises_not_found(self):
        inv = Invocation()
        with pytest.raises(CapabilityNotFound) as exc_info:
            inv.get(CLIENT, object)
        assert exc_info.value.key == CLIENT

    def test_set_twice_raises_duplicate(self):
        inv = Invocation()
        inv.set(PRINTER, JSONPrinter())
        with pytest.raises(DuplicateCapability):
            inv.set(PRINTER, JSONPrinter())

    def test_duplicate_keeps_first_value(self):
        inv = Invocation()
        first = JSONPrinter()
        inv.set(PRINTER, first)
        with pytest.raises(DuplicateCapability):
            inv.set(PRINTER, JSONPrinter())
        assert inv.get(PRINTER, Printer) is first

    def test_wrong_type_raises_mismatch(self):
        inv = Invocation()
        inv.set(CONTEXT, "not a context")
        with pytest.raises(CapabilityTypeMismatch) as exc_info:
            inv.get(CONTEXT, ExecutionContext)
        assert exc_info.value.expected is ExecutionContext
        assert exc_info.value.actual is str

    def test_has(self):
        inv = Invocation()
        assert not inv.has(PRINTER)
        inv.set(PRINTER, JSONPrinter())
        assert inv.has(PRINTER)

    def test_capabilities_view(self):
        inv = Invocation()
        ctx = make_context()
        printer = JSONPrinter()
        client, _ = make_client(_ok)
        inv.set(CONTEXT, ctx)
        inv.set(PRINTER, printer)
        inv.set(CLIENT, client)

        caps = inv.capabilities()
        assert caps == Capabilities(context=ctx, printer=printer, client=client)

    def test_capabilities_view_requires_all_hooks(self):
        inv = Invocation()
        inv.set(CONTEXT, make_context())
        with pytest.raises(CapabilityNotFound):
            inv.capabilities()

    def test_capability_errors_are_labctl_errors(self):
        for cls in (CapabilityNotFound, CapabilityTypeMismatch, DuplicateCapability):
            assert issubclass(cls, CapabilityError)
            assert issubclass(cls, LabctlError)


class TestGetInvocation:
    def test_shared_across_command_tree(self):
        root = click.Context(click.Group("root"))
        child = click.Context(click.Group("debug"), parent=root)
        leaf = click.Context(click.Command("run"), parent=child)
        assert get_invocation(leaf) is get_invocation(root)
        assert get_invocation(child) is get_invocation(root)

    def test_separate_trees_get_separate_invocations(self):
        a = click.Context(click.Command("a"))
        b = click.Context(click.Command("b"))
        assert get_invocation(a) is not get_invocation(b)


class TestPassCapabilities:
    def test_missing_capabilities_raise(self):
        @click.command()
        @pass_capabilities
        def cmd(caps):
            pass

        with click.Context(cmd) as ctx:
            with pytest.raises(CapabilityNotFound):
                ctx.invoke(cmd)

    def test_passes_capabilities_first(self):
        seen = {}

        @click.command()
        @click.argument("name")
        @pass_capabilities
        def cmd(caps, name):
            seen["caps"] = caps
            seen["name"] = name

        client, _ = make_client(_ok)
        with click.Context(cmd) as ctx:
            inv = get_invocation(ctx)
            inv.set(CONTEXT, make_context())
            inv.set(PRINTER, JSONPrinter())
            inv.set(CLIENT, client)
            ctx.invoke(cmd, name="x")

        assert isinstance(seen["caps"], Capabilities)
        assert seen["name"] == "x"


class TestExecutionContext:
    def test_check_passes_by_default(self):
        ctx = make_context()
        ctx.check()
        assert ctx.remaining() is None
        assert not ctx.cancelled

    def test_cancel(self):
        ctx = make_context()
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(Cancelled, match="cancelled"):
            ctx.check()

    def test_expired_deadline(self):
        ctx = make_context(deadline=time.monotonic() - 1)
        assert ctx.remaining() == 0
        with pytest.raises(Cancelled, match="deadline"):
            ctx.check()

    def test_future_deadline(self):
        ctx = make_context(deadline=time.monotonic() + 60)
        ctx.check()
        assert 0 < ctx.remaining() <= 60
        assert not ctx.expired

    def test_within_slack_of_deadline_is_expired(self):
        ctx = make_context(deadline=time.monotonic() + DEADLINE_SLACK / 4)
        assert ctx.expired
        with pytest.raises(Cancelled, match="deadline"):
            ctx.check()

    def test_no_deadline_never_expires(self):
        assert not make_context().expired
