"""labctl: control plane for a distributed experiment lab.

Commands are carried out by remote labagent and labapp services over HTTP.
"""

from labctl._version import __version__

from labctl.context import Capabilities, ExecutionContext, Invocation, get_invocation
from labctl.exceptions import (
    Cancelled,
    CapabilityError,
    CapabilityNotFound,
    CapabilityTypeMismatch,
    ClientInitError,
    ConfigurationError,
    DuplicateCapability,
    InvalidArgument,
    LabctlError,
    PostUpdateUnhealthy,
    RemoteError,
    RemoteTaskRejected,
    RemoteUnhealthy,
)
from labctl.hooks import HookChain, join_hooks
from labctl.instrument import LabCommand, LabGroup, instrument, wire_app
from labctl.tracing import Tracer

__all__ = [
    "__version__",
    "Capabilities",
    "ExecutionContext",
    "Invocation",
    "get_invocation",
    "HookChain",
    "join_hooks",
    "LabCommand",
    "LabGroup",
    "instrument",
    "wire_app",
    "Tracer",
    "LabctlError",
    "ConfigurationError",
    "InvalidArgument",
    "ClientInitError",
    "CapabilityError",
    "CapabilityNotFound",
    "CapabilityTypeMismatch",
    "DuplicateCapability",
    "RemoteError",
    "RemoteTaskRejected",
    "RemoteUnhealthy",
    "PostUpdateUnhealthy",
    "Cancelled",
]
