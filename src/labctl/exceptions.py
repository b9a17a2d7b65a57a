"""labctl exception hierarchy.

All labctl-specific exceptions inherit from LabctlError.
"""

from __future__ import annotations


class LabctlError(Exception):
    """Base exception for all labctl errors."""


class ConfigurationError(LabctlError):
    """Raised for bad flag or environment values (log writer, log level)."""


class InvalidArgument(LabctlError):
    """Raised for malformed command-line input, before any remote call."""


class ClientInitError(LabctlError):
    """Raised when the HTTP client cannot be constructed."""


class CapabilityError(LabctlError):
    """Base for capability wiring errors.

    These indicate a hook wiring bug and should never surface from a
    correctly instrumented command tree.
    """

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(message)


class CapabilityNotFound(CapabilityError):
    """Raised when a capability is read before its hook has set it."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"Capability not set: {key}")


class CapabilityTypeMismatch(CapabilityError):
    """Raised when a stored capability is not of the expected type."""

    def __init__(self, key: str, expected: type, actual: type) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            key,
            f"Capability '{key}' is {actual.__name__}, expected {expected.__name__}",
        )


class DuplicateCapability(CapabilityError):
    """Raised when a capability key is set twice for one invocation."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"Capability already set: {key}")


class RemoteError(LabctlError):
    """Raised when talking to a labagent or labapp fails.

    Attributes:
        operation: The facade operation that failed (e.g. "update").
        url: The URL that was requested.
        status_code: HTTP status of the response, or None for transport
            and decoding failures.
    """

    def __init__(
        self,
        operation: str,
        url: str,
        detail: str,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.url = url
        self.detail = detail
        self.status_code = status_code
        msg = f"{operation} {url} failed"
        if status_code is not None:
            msg += f" (HTTP {status_code})"
        super().__init__(f"{msg}: {detail}")


class RemoteTaskRejected(RemoteError):
    """Raised when a labapp reports a task type or subject as invalid."""


class RemoteUnhealthy(LabctlError):
    """Base for errors about a remote that answered but is not healthy."""


class PostUpdateUnhealthy(RemoteUnhealthy):
    """Raised when an update succeeded but the labapp is unhealthy afterward."""

    def __init__(self, app_addr: str) -> None:
        self.app_addr = app_addr
        super().__init__(f"labapp unhealthy after update: {app_addr}")


class Cancelled(LabctlError):
    """Raised when an invocation is cancelled or its deadline passes."""
