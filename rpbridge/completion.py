"""Adapters turning handler computations into host completions.

Two shapes are supported:

* ``run_detached`` starts a computation in the background and forwards both
  outcomes to a diagnostic sink. The host never hears back.
* ``run_bridged``/``bridged`` deliver the outcome to a host-supplied,
  error-first ``done(error, value)`` callback exactly once.

A computation is an awaitable or a zero-argument factory returning one. A
factory that raises before producing an awaitable counts as a failed start and
goes down the same error path as a failed await.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from .diagnostics import DiagnosticSink

LOG = logging.getLogger(__name__)

Computation = Union[Awaitable[Any], Callable[[], Any]]
Done = Callable[[Union[BaseException, None], Any], object]
ErrorCallback = Callable[[BaseException], None]
SuccessCallback = Callable[[Any], None]

_PENDING: set[asyncio.Task[Any]] = set()


def observe(
    computation: Computation,
    on_error: ErrorCallback,
    on_success: SuccessCallback,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    """Start ``computation`` and route its single outcome to one of two callbacks."""

    awaitable: Any = None
    try:
        awaitable = computation() if _is_factory(computation) else computation
        if not inspect.isawaitable(awaitable):
            resolved, task = True, None
        else:
            target = loop or asyncio.get_running_loop()
            resolved, task = False, asyncio.ensure_future(awaitable, loop=target)
    except Exception as exc:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        LOG.debug("Computation failed to start", exc_info=exc)
        on_error(exc)
        return

    if resolved:
        on_success(awaitable)
        return

    assert task is not None
    _PENDING.add(task)
    task.add_done_callback(lambda finished: _settle(finished, on_error, on_success))


def _is_factory(computation: Computation) -> bool:
    return callable(computation) and not inspect.isawaitable(computation)


def _settle(task: asyncio.Task[Any], on_error: ErrorCallback, on_success: SuccessCallback) -> None:
    _PENDING.discard(task)
    if task.cancelled():
        on_error(asyncio.CancelledError())
        return
    exc = task.exception()
    if exc is not None:
        on_error(exc)
    else:
        on_success(task.result())


def run_detached(
    computation: Computation,
    *,
    sink: DiagnosticSink,
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    """Run ``computation`` in the background, reporting either outcome to ``sink``."""

    def _failed(exc: BaseException) -> None:
        LOG.debug("Detached computation failed", extra={"error": repr(exc)})
        sink.report(exc)

    observe(computation, _failed, sink.report, loop=loop)


class CompletionGuard:
    """Forwards the first ``(error, value)`` pair to ``done`` and drops the rest."""

    def __init__(self, done: Done) -> None:
        self._done = done
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def __call__(self, error: BaseException | None, value: Any) -> None:
        if self._fired:
            LOG.warning(
                "Dropping duplicate completion",
                extra={"error": repr(error), "value": repr(value)},
            )
            return
        self._fired = True
        try:
            self._done(error, value)
        except Exception:
            LOG.exception("Completion callback raised")

    def fail(self, error: BaseException) -> None:
        self(error, None)

    def succeed(self, value: Any) -> None:
        self(None, value)


def run_bridged(
    done: Done,
    computation: Computation,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> None:
    """Callback-first bridge: deliver ``computation``'s outcome to ``done`` once."""

    guard = CompletionGuard(done)
    observe(computation, guard.fail, guard.succeed, loop=loop)


def bridged(
    computation: Computation,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Callable[[Done], None]:
    """Callback-last bridge: returns a function awaiting the host's ``done``."""

    def _run(done: Done) -> None:
        run_bridged(done, computation, loop=loop)

    return _run


def pending() -> tuple[asyncio.Task[Any], ...]:
    """Tasks started by the adapters that have not settled yet."""

    return tuple(_PENDING)


async def drain() -> None:
    """Wait for every in-flight task owned by the running loop to settle."""

    loop = asyncio.get_running_loop()
    while tasks := [task for task in _PENDING if task.get_loop() is loop]:
        await asyncio.gather(*tasks, return_exceptions=True)


__all__ = [
    "CompletionGuard",
    "Computation",
    "Done",
    "bridged",
    "drain",
    "observe",
    "pending",
    "run_bridged",
    "run_detached",
]
