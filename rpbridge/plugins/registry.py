"""Registry wiring plugin handlers into the host's native entry points."""

from __future__ import annotations

import inspect
import logging
from functools import partial
from typing import Any, Callable, Iterable, Mapping, Sequence

from rpbridge.completion import Done, bridged, run_bridged, run_detached
from rpbridge.diagnostics import DiagnosticSink, NullDiagnosticSink, sink_from_config

from .decorators import handler_spec
from .invocations import (
    AutocommandInvocation,
    CommandInvocation,
    FunctionInvocation,
    deferred,
)
from .types import (
    AutocmdHandler,
    CommandHandler,
    FunctionHandler,
    HandlerCategory,
    Host,
    NativeCallback,
    Options,
    PluginContext,
    Registration,
    RegistrationError,
    make_options,
)

LOG = logging.getLogger(__name__)


class HandlerRegistry:
    """Adapts category-shaped handlers and hands them to the host."""

    def __init__(self, ctx: PluginContext) -> None:
        if ctx.host is None:
            raise RegistrationError("Plugin context has no host to register with")
        self._ctx = ctx
        self._host: Host = ctx.host
        self._sink = _resolve_sink(ctx)
        self._registrations: dict[tuple[HandlerCategory, str], Registration] = {}

    @property
    def context(self) -> PluginContext:
        return self._ctx

    @property
    def diagnostics(self) -> DiagnosticSink:
        return self._sink

    def registrations(self) -> list[Registration]:
        """Return everything registered so far, in registration order."""

        return list(self._registrations.values())

    def discard(self, entries: Iterable[Registration]) -> None:
        """Forget ``entries`` so their names can be registered again.

        Native entry points cannot withdraw a callback, so whatever the host
        already holds stays callable until the name is registered again.
        """

        for entry in entries:
            self._registrations.pop((entry.category, entry.name), None)
            LOG.debug("Discarded handler", extra={"category": entry.category.value, "handler": entry.name})

    def register_command(self, name: str, options: Mapping[str, str] | None, handler: CommandHandler) -> None:
        ctx = self._ctx

        def _native(args: Sequence[Any] | None, line_range: Sequence[int]) -> None:
            build = partial(CommandInvocation.from_host, ctx, args, line_range)
            run_detached(deferred(build, handler), sink=self._sink, loop=ctx.loop)

        self._register(HandlerCategory.COMMAND, name, options, handler, False, _native)

    def register_command_blocking(
        self, name: str, options: Mapping[str, str] | None, handler: CommandHandler
    ) -> None:
        ctx = self._ctx

        def _native(done: Done, args: Sequence[Any] | None, line_range: Sequence[int]) -> None:
            build = partial(CommandInvocation.from_host, ctx, args, line_range)
            run_bridged(done, deferred(build, handler), loop=ctx.loop)

        self._register(HandlerCategory.COMMAND, name, options, handler, True, _native)

    def register_autocmd(self, name: str, options: Mapping[str, str] | None, handler: AutocmdHandler) -> None:
        ctx = self._ctx

        def _native(filename: str) -> None:
            build = partial(AutocommandInvocation.from_host, ctx, filename)
            run_detached(deferred(build, handler), sink=self._sink, loop=ctx.loop)

        self._register(HandlerCategory.AUTOCMD, name, options, handler, False, _native)

    def register_autocmd_blocking(
        self, name: str, options: Mapping[str, str] | None, handler: AutocmdHandler
    ) -> None:
        ctx = self._ctx

        def _native(filename: str, done: Done) -> None:
            build = partial(AutocommandInvocation.from_host, ctx, filename)
            bridged(deferred(build, handler), loop=ctx.loop)(done)

        self._register(HandlerCategory.AUTOCMD, name, options, handler, True, _native)

    def register_function(self, name: str, options: Mapping[str, str] | None, handler: FunctionHandler) -> None:
        ctx = self._ctx

        def _native(args: Sequence[Any] | None) -> None:
            build = partial(FunctionInvocation.from_host, ctx, args)
            run_detached(deferred(build, handler), sink=self._sink, loop=ctx.loop)

        self._register(HandlerCategory.FUNCTION, name, options, handler, False, _native)

    def register_function_blocking(
        self, name: str, options: Mapping[str, str] | None, handler: FunctionHandler
    ) -> None:
        ctx = self._ctx

        def _native(args: Sequence[Any] | None, done: Done) -> None:
            build = partial(FunctionInvocation.from_host, ctx, args)
            bridged(deferred(build, handler), loop=ctx.loop)(done)

        self._register(HandlerCategory.FUNCTION, name, options, handler, True, _native)

    def register_declared(self, obj: object) -> list[Registration]:
        """Register every method of ``obj`` carrying a handler declaration."""

        added: list[Registration] = []
        for _, member in inspect.getmembers(obj, callable):
            spec = handler_spec(member)
            if spec is None:
                continue
            register = self._operation(spec.category, spec.blocking)
            register(spec.name, spec.options, member)
            added.append(self._registrations[(spec.category, spec.name)])
        return added

    def _operation(self, category: HandlerCategory, blocking: bool) -> Callable[..., None]:
        operations: dict[tuple[HandlerCategory, bool], Callable[..., None]] = {
            (HandlerCategory.COMMAND, False): self.register_command,
            (HandlerCategory.COMMAND, True): self.register_command_blocking,
            (HandlerCategory.AUTOCMD, False): self.register_autocmd,
            (HandlerCategory.AUTOCMD, True): self.register_autocmd_blocking,
            (HandlerCategory.FUNCTION, False): self.register_function,
            (HandlerCategory.FUNCTION, True): self.register_function_blocking,
        }
        return operations[(category, blocking)]

    def _register(
        self,
        category: HandlerCategory,
        name: str,
        options: Mapping[str, str] | None,
        handler: object,
        blocking: bool,
        native: NativeCallback,
    ) -> None:
        if not name:
            raise RegistrationError(f"Cannot register a {category.value} without a name")
        if not callable(handler):
            raise RegistrationError(f"{category.value.capitalize()} '{name}' is missing a handler")
        key = (category, name)
        if key in self._registrations:
            raise RegistrationError(f"{category.value.capitalize()} '{name}' is already registered")

        resolved: Options = make_options(**dict(options or {}))
        entry_points: dict[HandlerCategory, Callable[[str, Options, NativeCallback], None]] = {
            HandlerCategory.COMMAND: self._host.register_command,
            HandlerCategory.AUTOCMD: self._host.register_autocmd,
            HandlerCategory.FUNCTION: self._host.register_function,
        }
        entry_points[category](name, resolved, native)
        self._registrations[key] = Registration(category, name, resolved, blocking)
        LOG.debug(
            "Registered handler",
            extra={"category": category.value, "handler": name, "blocking": blocking},
        )


def _resolve_sink(ctx: PluginContext) -> DiagnosticSink:
    if ctx.diagnostics is not None:
        return ctx.diagnostics
    if ctx.config is not None:
        return sink_from_config(ctx.config)
    return NullDiagnosticSink()


__all__ = ["HandlerRegistry"]
