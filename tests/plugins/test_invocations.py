"""Tests for per-category invocation records."""

from __future__ import annotations

import pytest

from rpbridge.plugins import (
    AutocommandInvocation,
    CommandInvocation,
    FunctionInvocation,
    LineRange,
    PluginContext,
    make_options,
)
from rpbridge.plugins.invocations import deferred


def test_command_invocation_freezes_host_arguments() -> None:
    ctx = PluginContext()
    invocation = CommandInvocation.from_host(ctx, ["a", 2], [4, 4])

    assert invocation.args == ("a", "2")
    assert invocation.range == LineRange.single(4)
    assert invocation.invoke(lambda c, args, rng: (c, args, rng.start, rng.end)) == (ctx, ("a", "2"), 4, 4)


def test_function_invocation_without_args() -> None:
    invocation = FunctionInvocation.from_host(PluginContext(), None)

    assert invocation.args == ()
    assert invocation.invoke(lambda ctx, args: len(args)) == 0


def test_autocommand_invocation_passes_filename() -> None:
    invocation = AutocommandInvocation.from_host(PluginContext(), "a.txt")

    assert invocation.invoke(lambda ctx, filename: filename) == "a.txt"


@pytest.mark.parametrize("value", [[1], [0, 1], [3, 2], [1, 2, 3]])
def test_line_range_rejects_malformed_pairs(value: list[int]) -> None:
    with pytest.raises(ValueError):
        LineRange.coerce(value)


def test_deferred_builds_lazily() -> None:
    built: list[str] = []

    def _build() -> FunctionInvocation:
        built.append("built")
        return FunctionInvocation.from_host(PluginContext(), ["x"])

    start = deferred(_build, lambda ctx, args: args[0])

    assert built == []
    assert start() == "x"
    assert built == ["built"]


def test_make_options_is_read_only() -> None:
    options = make_options(nargs="?")

    assert dict(options) == {"nargs": "?", "range": ""}
    with pytest.raises(TypeError):
        options["range"] = "%"  # type: ignore[index]
