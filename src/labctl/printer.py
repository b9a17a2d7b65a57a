"""Output printers for command results.

``unix`` prints one ``key<TAB>value`` line per field, suitable for piping
into cut/awk. ``json`` prints the result as indented JSON.
Both write through a Rich console, which degrades to plain text when
stdout is not a TTY.
"""

from __future__ import annotations

import enum
import json
from typing import Any

from pydantic import BaseModel
from rich.console import Console


class OutputType(str, enum.Enum):
    """Supported values of the global ``--output`` option."""

    UNIX = "unix"
    JSON = "json"


def _to_data(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


class Printer:
    """Base printer. Subclasses render one result value."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console

    @property
    def console(self) -> Console:
        # Resolved lazily so the console binds to the stdout in effect at print time.
        if self._console is None:
            self._console = Console()
        return self._console

    def print(self, value: Any) -> None:
        raise NotImplementedError


class UnixPrinter(Printer):
    """Tab-separated, one line per field or list item."""

    def print(self, value: Any) -> None:
        data = _to_data(value)
        for line in self._lines(data):
            self.console.out(line, highlight=False)

    def _lines(self, data: Any) -> list[str]:
        if isinstance(data, dict):
            return [f"{key}\t{self._scalar(val)}" for key, val in data.items()]
        if isinstance(data, (list, tuple)):
            return [self._scalar(item) for item in data]
        return [self._scalar(data)]

    @staticmethod
    def _scalar(value: Any) -> str:
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        if isinstance(value, dict):
            return json.dumps(value, sort_keys=True)
        if value is None:
            return ""
        return str(value)


class JSONPrinter(Printer):
    """Indented JSON document per result."""

    def print(self, value: Any) -> None:
        self.console.out(json.dumps(_to_data(value), indent=4), highlight=False)


def new_printer(output: str, console: Console | None = None) -> Printer:
    """Build the printer for an ``--output`` value.

    Raises:
        ValueError: If ``output`` is not one of :class:`OutputType`.
    """
    output_type = OutputType(output)
    if output_type is OutputType.JSON:
        return JSONPrinter(console)
    return UnixPrinter(console)
