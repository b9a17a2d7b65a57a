"""Global configuration for a labctl invocation.

CLIConfig holds the global options (``--log-level``, ``--log-writer``,
``--output``, ``--timeout``). Values are kept as given; the lifecycle hooks
that consume them reject bad values with the errors operators expect
(ConfigurationError for logging, InvalidArgument for output).
"""

from __future__ import annotations

from typing import Optional

import click
from pydantic import BaseModel, field_validator

DEFAULT_AGENT_ADDR = "http://localhost:7002"
DEFAULT_APP_ADDR = "http://localhost:7003"


class CLIConfig(BaseModel):
    """Global options shared by every command of one invocation."""

    model_config = {"frozen": True}

    log_level: str = "info"
    log_writer: str = "console"
    output: str = "unix"
    timeout: Optional[float] = None  # seconds; None or 0 = no deadline

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            return None
        return value

    @property
    def debug(self) -> bool:
        return self.log_level.strip().lower() == "debug"


def get_config(ctx: click.Context) -> CLIConfig:
    """Return the CLIConfig of the command tree that ``ctx`` belongs to.

    Built from the root command's parsed global options the first time it is
    asked for, then cached on the root context's ``obj``. Trees without the
    global options (e.g. in tests) get the defaults.
    """
    root = ctx.find_root()
    if not isinstance(root.obj, CLIConfig):
        options = {
            key: value
            for key, value in root.params.items()
            if key in CLIConfig.model_fields and value is not None
        }
        root.obj = CLIConfig(**options)
    return root.obj
