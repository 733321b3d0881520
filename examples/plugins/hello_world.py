"""Sample plugin implementing the contract for manual and automated tests."""

from __future__ import annotations

import asyncio

from rpbridge.plugins import (
    Args,
    HandlerRegistry,
    LineRange,
    PluginContext,
    PluginDescriptor,
    autocmd,
    command,
    function,
)


class HelloWorldPlugin(PluginDescriptor):
    """Minimal descriptor exercising every handler category."""

    name = "hello-world"
    version = "0.0.1"
    min_core = "0.1.0"

    def __init__(self) -> None:
        self.shutdown_called = False
        self.registration_count = 0
        self.greetings: list[str] = []
        self.saved: list[str] = []

    def register(self, registry: HandlerRegistry) -> None:
        self.registration_count += 1
        registry.register_declared(self)

    async def on_shutdown(self) -> None:
        self.shutdown_called = True

    @command("Hello", nargs="?")
    async def hello(self, ctx: PluginContext, args: Args, line_range: LineRange) -> None:
        await asyncio.sleep(0)
        who = args[0] if args else "world"
        self.greetings.append(f"hello {who} ({line_range.start}-{line_range.end})")

    @autocmd("BufWritePost", pattern="*.txt")
    async def on_save(self, ctx: PluginContext, filename: str) -> None:
        self.saved.append(filename)

    @function("Double", blocking=True, nargs="1")
    async def double(self, ctx: PluginContext, args: Args) -> int:
        await asyncio.sleep(0)
        return int(args[0]) * 2
