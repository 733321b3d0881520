"""Plugin contract primitives shared between the registry, hosts and plugins."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping, NamedTuple, Protocol, Sequence

from rpbridge.config import BridgeConfig
from rpbridge.diagnostics import DiagnosticSink

if TYPE_CHECKING:
    from .registry import HandlerRegistry

Args = tuple[str, ...]
Options = Mapping[str, str]
NativeCallback = Callable[..., None]

DEFAULT_OPTS: Options = MappingProxyType({"nargs": "*", "range": ""})


def make_options(**overrides: str) -> Options:
    """Return a read-only copy of the default options with ``overrides`` applied."""

    merged = dict(DEFAULT_OPTS)
    merged.update(overrides)
    return MappingProxyType(merged)


class LineRange(NamedTuple):
    """Inclusive, 1-based line span a command applies to."""

    start: int
    end: int

    @classmethod
    def single(cls, line: int) -> LineRange:
        return cls(line, line)

    @classmethod
    def coerce(cls, value: Sequence[int]) -> LineRange:
        """Build a range from a host-supplied ``[start, end]`` pair."""

        if len(value) != 2:
            raise ValueError(f"Expected a [start, end] pair, got {list(value)!r}")
        start, end = int(value[0]), int(value[1])
        if start < 1 or end < start:
            raise ValueError(f"Invalid line range [{start}, {end}]")
        return cls(start, end)


class HandlerCategory(str, Enum):
    """Kinds of handlers a host can invoke."""

    COMMAND = "command"
    AUTOCMD = "autocmd"
    FUNCTION = "function"


class Host(Protocol):
    """Native registration entry points exposed by the plugin host."""

    def register_command(self, name: str, options: Options, callback: NativeCallback) -> None: ...

    def register_autocmd(self, name: str, options: Options, callback: NativeCallback) -> None: ...

    def register_function(self, name: str, options: Options, callback: NativeCallback) -> None: ...


class PluginContext(NamedTuple):
    """Runtime dependencies handed to every handler invocation."""

    host: Host | None = None
    diagnostics: DiagnosticSink | None = None
    config: BridgeConfig | None = None
    loop: asyncio.AbstractEventLoop | None = None


CommandHandler = Callable[[PluginContext, Args, LineRange], Any]
AutocmdHandler = Callable[[PluginContext, str], Any]
FunctionHandler = Callable[[PluginContext, Args], Any]


@dataclass(frozen=True, slots=True)
class Registration:
    """Record of a handler handed to the host."""

    category: HandlerCategory
    name: str
    options: Options
    blocking: bool


class PluginDescriptor(Protocol):
    """Contract implemented by third-party plugins."""

    name: str
    version: str
    min_core: str

    def register(self, registry: HandlerRegistry) -> None: ...

    async def on_shutdown(self) -> None: ...


class RpbridgeError(RuntimeError):
    """Base error for the bridge."""


class RegistrationError(RpbridgeError):
    """Raised when a handler cannot be registered."""


class PluginError(RpbridgeError):
    """Raised when a plugin fails to load."""


class PluginCompatibilityError(PluginError):
    """Raised when a plugin does not satisfy the minimum core version."""
