"""Decorators declaring handlers on plugin classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from .types import HandlerCategory, Options, make_options

F = TypeVar("F", bound=Callable[..., Any])

SPEC_ATTR = "_rpbridge_spec"


@dataclass(frozen=True, slots=True)
class HandlerSpec:
    category: HandlerCategory
    name: str
    options: Options
    blocking: bool


def _declare(category: HandlerCategory, name: str | None, blocking: bool, options: dict[str, str]) -> Callable[[F], F]:
    def _decorator(fn: F) -> F:
        spec = HandlerSpec(
            category=category,
            name=name or fn.__name__,
            options=make_options(**options),
            blocking=blocking,
        )
        setattr(fn, SPEC_ATTR, spec)
        return fn

    return _decorator


def command(name: str | None = None, *, blocking: bool = False, **options: str) -> Callable[[F], F]:
    """Declare ``fn(ctx, args, range)`` as a host command."""

    return _declare(HandlerCategory.COMMAND, name, blocking, options)


def autocmd(name: str | None = None, *, blocking: bool = False, **options: str) -> Callable[[F], F]:
    """Declare ``fn(ctx, filename)`` as an autocommand handler."""

    return _declare(HandlerCategory.AUTOCMD, name, blocking, options)


def function(name: str | None = None, *, blocking: bool = False, **options: str) -> Callable[[F], F]:
    """Declare ``fn(ctx, args)`` as a host-callable function."""

    return _declare(HandlerCategory.FUNCTION, name, blocking, options)


def handler_spec(obj: Any) -> HandlerSpec | None:
    spec = getattr(obj, SPEC_ATTR, None)
    return spec if isinstance(spec, HandlerSpec) else None


__all__ = ["HandlerSpec", "autocmd", "command", "function", "handler_spec"]
