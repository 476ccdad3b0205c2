"""Tests for chunkctl.core.output module."""

from __future__ import annotations

import json

import pytest

from chunkctl.core.output import (
    ChunkProgressBar,
    OutputFormat,
    format_bytes,
    print_output,
)
from chunkctl.models import SessionState, TransferProgress


@pytest.mark.parametrize(
    "size,expected",
    [(0, "0 B"), (1023, "1023 B"), (1024, "1.0 KiB"), (12 * 1024 * 1024, "12.0 MiB")],
)
def test_format_bytes(size: int, expected: str) -> None:
    assert format_bytes(size) == expected


def test_output_format_from_string() -> None:
    assert OutputFormat.from_string("JSON") is OutputFormat.JSON


def test_print_output_json(capsys: pytest.CaptureFixture[str]) -> None:
    print_output([{"a": 1}], format=OutputFormat.JSON, columns=["a"])
    assert json.loads(capsys.readouterr().out) == [{"a": 1}]


class TestChunkProgressBar:
    def test_tracks_acknowledged_bytes(self) -> None:
        with ChunkProgressBar("up", file_size=2500, chunk_size=1000) as bar:
            bar.update(TransferProgress(SessionState.UPLOADING, current=2, total=3))
            task = bar._progress.tasks[0]
            assert task.completed == 2000

            bar.update(TransferProgress(SessionState.COMPLETING, current=3, total=3))
            assert task.completed == 2500

    def test_update_before_start_is_ignored(self) -> None:
        bar = ChunkProgressBar("up", file_size=10, chunk_size=5)
        bar.update(TransferProgress(SessionState.UPLOADING, current=1, total=2))
