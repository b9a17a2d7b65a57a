"""Structured logger construction for command invocations.

The log writer is chosen by ``--log-writer``: ``console`` renders records
through a Rich handler on stderr, ``json`` writes one JSON object per line to
stderr. Level names follow the set operators already use with the lab
agents (``trace`` .. ``panic``, ``disabled``).
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

from rich.console import Console
from rich.logging import RichHandler

from labctl.exceptions import ConfigurationError

TRACE = 5
DISABLED = logging.CRITICAL + 10

logging.addLevelName(TRACE, "TRACE")

LOG_LEVELS: dict[str, int] = {
    "": logging.NOTSET,
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "disabled": DISABLED,
}

LOG_WRITERS = ("console", "json")

COMMAND_LOGGER = "labctl.command"

# LogRecord attributes that are not caller-supplied fields.
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def parse_level(level: str) -> int:
    """Parse a level name into a :mod:`logging` level.

    Raises:
        ConfigurationError: If the name is not a known level.
    """
    try:
        return LOG_LEVELS[level.strip().lower()]
    except KeyError:
        raise ConfigurationError(f"unknown log level {level!r}") from None


class JSONFormatter(logging.Formatter):
    """One JSON object per record, bound fields included."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname.lower(),
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def new_logger(
    log_writer: str,
    log_level: str,
    *,
    name: str = COMMAND_LOGGER,
) -> tuple[logging.Logger, IO[str]]:
    """Build a logger writing to stderr in the requested format.

    Handlers already attached to the named logger are replaced, so calling
    this once per invocation never duplicates output.

    Returns:
        The configured logger and the stream it writes to.

    Raises:
        ConfigurationError: For an unknown writer or level.
    """
    out = sys.stderr
    handler: logging.Handler
    if log_writer == "console":
        handler = RichHandler(
            console=Console(file=out, soft_wrap=True),
            show_path=False,
            markup=False,
        )
    elif log_writer == "json":
        handler = logging.StreamHandler(out)
        handler.setFormatter(JSONFormatter())
    else:
        raise ConfigurationError(f"unknown log writer {log_writer!r}")

    level = parse_level(log_level)

    logger = logging.getLogger(name)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(level if level != logging.NOTSET else 1)
    logger.propagate = False
    return logger, out
