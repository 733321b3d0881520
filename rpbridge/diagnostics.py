"""Out-of-band diagnostic sinks for detached handler outcomes."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Protocol

from pydantic_core import PydanticSerializationError, to_json

from .config import BridgeConfig

LOG = logging.getLogger(__name__)


class DiagnosticSink(Protocol):
    """Side-effecting channel receiving values for later inspection."""

    def report(self, value: Any) -> None: ...


def serialize(value: Any) -> str:
    """Render ``value`` as a single JSON document."""

    try:
        rendered = to_json(value, bytes_mode="base64", fallback=_fallback)
    except PydanticSerializationError:
        rendered = to_json(repr(value))
    return rendered.decode("utf-8")


def _fallback(value: Any) -> Any:
    if isinstance(value, BaseException):
        return {"error": type(value).__name__, "message": str(value)}
    return repr(value)


class FileDiagnosticSink:
    """Appends one JSON line per reported value to ``path``."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def report(self, value: Any) -> None:
        line = serialize(value) + "\n"
        LOG.debug("Diagnostic report", extra={"diagnostic": line.rstrip()})
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(line)


class NullDiagnosticSink:
    """Disabled destination; reports are dropped."""

    def report(self, value: Any) -> None:
        LOG.debug("Diagnostic output disabled; dropping report")


class MemoryDiagnosticSink:
    """Keeps reported values in arrival order."""

    def __init__(self) -> None:
        self.values: list[Any] = []

    def report(self, value: Any) -> None:
        self.values.append(value)

    def clear(self) -> None:
        self.values.clear()


def sink_from_config(config: BridgeConfig) -> DiagnosticSink:
    """Build the sink described by ``config``."""

    if config.diagnostic_path is None:
        return NullDiagnosticSink()
    return FileDiagnosticSink(config.diagnostic_path)


__all__ = [
    "DiagnosticSink",
    "FileDiagnosticSink",
    "MemoryDiagnosticSink",
    "NullDiagnosticSink",
    "serialize",
    "sink_from_config",
]
