"""Tests for diagnostic sinks."""

from __future__ import annotations

import asyncio
import json
from functools import partial
from pathlib import Path

import pytest

from rpbridge.completion import drain, run_detached
from rpbridge.config import BridgeConfig
from rpbridge.diagnostics import (
    FileDiagnosticSink,
    MemoryDiagnosticSink,
    NullDiagnosticSink,
    serialize,
    sink_from_config,
)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def test_serialize_renders_exceptions_as_objects() -> None:
    rendered = json.loads(serialize(RuntimeError("disk full")))

    assert rendered == {"error": "RuntimeError", "message": "disk full"}


def test_serialize_handles_plain_and_unknown_values() -> None:
    class Opaque:
        def __repr__(self) -> str:
            return "<opaque>"

    assert json.loads(serialize(7)) == 7
    assert json.loads(serialize({"args": ("a", "b")})) == {"args": ["a", "b"]}
    assert json.loads(serialize(Opaque())) == "<opaque>"


def test_file_sink_appends_one_line_per_report(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "diagnostics.jsonl"
    sink = FileDiagnosticSink(path)

    sink.report("first")
    sink.report(ValueError("second"))

    lines = path.read_text().splitlines()
    assert [json.loads(line) for line in lines] == [
        "first",
        {"error": "ValueError", "message": "second"},
    ]


def test_null_sink_discards_reports() -> None:
    NullDiagnosticSink().report(RuntimeError("ignored"))


def test_memory_sink_keeps_order() -> None:
    sink = MemoryDiagnosticSink()

    sink.report(1)
    sink.report("two")

    assert sink.values == [1, "two"]
    sink.clear()
    assert sink.values == []


def test_sink_from_config_disabled_without_path() -> None:
    assert isinstance(sink_from_config(BridgeConfig()), NullDiagnosticSink)


def test_sink_from_config_uses_configured_path(tmp_path: Path) -> None:
    sink = sink_from_config(BridgeConfig(diagnostic_path=tmp_path / "out.jsonl"))

    assert isinstance(sink, FileDiagnosticSink)
    assert sink.path == tmp_path / "out.jsonl"


def test_file_sink_writes_values_json_cannot_encode_directly(tmp_path: Path) -> None:
    path = tmp_path / "diagnostics.jsonl"
    sink = FileDiagnosticSink(path)
    looped: list[object] = []
    looped.append(looped)

    sink.report(b"\xff")
    sink.report(looped)

    first, second = [json.loads(line) for line in path.read_text().splitlines()]
    assert first in ("/w==", "_w==")
    assert second == "[[...]]"


@pytest.mark.anyio
async def test_file_sink_keeps_concurrent_detached_reports_whole(tmp_path: Path) -> None:
    path = tmp_path / "diagnostics.jsonl"
    sink = FileDiagnosticSink(path)
    count = 50

    async def _handler(index: int) -> dict[str, object]:
        await asyncio.sleep(0)
        if index % 2:
            raise RuntimeError(f"failure {index}")
        return {"index": index, "payload": "x" * 512}

    for index in range(count):
        run_detached(partial(_handler, index), sink=sink)
    await drain()

    lines = path.read_text().splitlines()
    assert len(lines) == count
    parsed = [json.loads(line) for line in lines]
    assert sorted(entry["index"] for entry in parsed if "index" in entry) == list(range(0, count, 2))
    assert sum(1 for entry in parsed if entry.get("error") == "RuntimeError") == count // 2
