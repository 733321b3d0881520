"""In-process host used for tests and local development."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from rpbridge.completion import Done

from .types import HandlerCategory, NativeCallback, Options

LOG = logging.getLogger(__name__)


class RecordingHost:
    """Stores native callbacks and replays host invocations against them.

    Blocking callbacks are called with the completion callback in the
    position each category's native entry point uses: first for commands,
    last for autocommands and functions.
    """

    def __init__(self) -> None:
        self._callbacks: dict[tuple[HandlerCategory, str], NativeCallback] = {}
        self._options: dict[tuple[HandlerCategory, str], Options] = {}

    def register_command(self, name: str, options: Options, callback: NativeCallback) -> None:
        self._store(HandlerCategory.COMMAND, name, options, callback)

    def register_autocmd(self, name: str, options: Options, callback: NativeCallback) -> None:
        self._store(HandlerCategory.AUTOCMD, name, options, callback)

    def register_function(self, name: str, options: Options, callback: NativeCallback) -> None:
        self._store(HandlerCategory.FUNCTION, name, options, callback)

    def options(self, category: HandlerCategory, name: str) -> Options:
        return self._options[(category, name)]

    def registered(self) -> list[tuple[HandlerCategory, str]]:
        return list(self._callbacks)

    def call_command(self, name: str, args: Sequence[str] = (), line_range: Sequence[int] = (1, 1)) -> None:
        self._lookup(HandlerCategory.COMMAND, name)(list(args), list(line_range))

    def call_command_blocking(
        self, name: str, done: Done, args: Sequence[str] = (), line_range: Sequence[int] = (1, 1)
    ) -> None:
        self._lookup(HandlerCategory.COMMAND, name)(done, list(args), list(line_range))

    def call_autocmd(self, name: str, filename: str) -> None:
        self._lookup(HandlerCategory.AUTOCMD, name)(filename)

    def call_autocmd_blocking(self, name: str, filename: str, done: Done) -> None:
        self._lookup(HandlerCategory.AUTOCMD, name)(filename, done)

    def call_function(self, name: str, args: Sequence[Any] = ()) -> None:
        self._lookup(HandlerCategory.FUNCTION, name)(list(args))

    def call_function_blocking(self, name: str, done: Done, args: Sequence[Any] = ()) -> None:
        self._lookup(HandlerCategory.FUNCTION, name)(list(args), done)

    def _store(self, category: HandlerCategory, name: str, options: Options, callback: NativeCallback) -> None:
        LOG.debug("Host registration", extra={"category": category.value, "handler": name})
        self._callbacks[(category, name)] = callback
        self._options[(category, name)] = options

    def _lookup(self, category: HandlerCategory, name: str) -> NativeCallback:
        try:
            return self._callbacks[(category, name)]
        except KeyError:
            raise KeyError(f"No {category.value} registered as '{name}'") from None


__all__ = ["RecordingHost"]
