"""Per-category invocation records adapting host arguments to handler calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from .types import (
    Args,
    AutocmdHandler,
    CommandHandler,
    FunctionHandler,
    LineRange,
    PluginContext,
)


def _freeze_args(args: Iterable[Any] | None) -> Args:
    if args is None:
        return ()
    return tuple(str(arg) for arg in args)


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    ctx: PluginContext
    args: Args
    range: LineRange

    @classmethod
    def from_host(cls, ctx: PluginContext, args: Iterable[Any] | None, line_range: Sequence[int]) -> CommandInvocation:
        return cls(ctx, _freeze_args(args), LineRange.coerce(line_range))

    def invoke(self, handler: CommandHandler) -> Any:
        return handler(self.ctx, self.args, self.range)


@dataclass(frozen=True, slots=True)
class AutocommandInvocation:
    ctx: PluginContext
    filename: str

    @classmethod
    def from_host(cls, ctx: PluginContext, filename: str) -> AutocommandInvocation:
        return cls(ctx, str(filename))

    def invoke(self, handler: AutocmdHandler) -> Any:
        return handler(self.ctx, self.filename)


@dataclass(frozen=True, slots=True)
class FunctionInvocation:
    ctx: PluginContext
    args: Args

    @classmethod
    def from_host(cls, ctx: PluginContext, args: Iterable[Any] | None) -> FunctionInvocation:
        return cls(ctx, _freeze_args(args))

    def invoke(self, handler: FunctionHandler) -> Any:
        return handler(self.ctx, self.args)


Invocation = CommandInvocation | AutocommandInvocation | FunctionInvocation


def deferred(build: Callable[[], Invocation], handler: Callable[..., Any]) -> Callable[[], Any]:
    """Factory producing the handler's computation when the adapter starts it.

    Building the invocation happens inside the factory so malformed host
    arguments surface as a failed start rather than escaping to the host.
    """

    def _start() -> Any:
        return build().invoke(handler)

    return _start


__all__ = [
    "AutocommandInvocation",
    "CommandInvocation",
    "FunctionInvocation",
    "Invocation",
    "deferred",
]
