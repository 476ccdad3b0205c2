"""Splitting a file into fixed-size byte ranges."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from chunkctl.core.exceptions import PartitionError
from chunkctl.transfer.constants import DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class ChunkDescriptor:
    """One chunk: ``index`` and the half-open byte range ``[start, end)``."""

    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class SourceFile:
    """A local file being uploaded. Only read, never modified."""

    name: str
    size: int
    path: Path
    modified: float = 0.0

    @classmethod
    def from_path(cls, path: Path | str, name: str | None = None) -> SourceFile:
        """Snapshot name, size and mtime of a file on disk.

        Raises:
            FileNotFoundError: If path does not exist.
            IsADirectoryError: If path is a directory.
        """
        path = Path(path).expanduser()
        if path.is_dir():
            raise IsADirectoryError(f"Not a file: {path}")
        stat = path.stat()
        return cls(name=name or path.name, size=stat.st_size, path=path, modified=stat.st_mtime)

    def read_range(self, start: int, end: int) -> bytes:
        with self.path.open("rb") as f:
            f.seek(start)
            return f.read(end - start)


def partition(file_size: int, chunk_length: int = DEFAULT_CHUNK_SIZE) -> list[ChunkDescriptor]:
    """Split ``file_size`` bytes into ordered, contiguous chunks.

    The last chunk is clamped to the file size and may be shorter than
    ``chunk_length``. A zero-length file yields no chunks.

    Args:
        file_size: Total bytes.
        chunk_length: Bytes per chunk.

    Returns:
        ``ceil(file_size / chunk_length)`` descriptors covering ``[0, file_size)``.

    Raises:
        PartitionError: On a negative size or non-positive chunk length.
    """
    if chunk_length <= 0:
        raise PartitionError("chunk length must be positive", chunk_length=chunk_length)
    if file_size < 0:
        raise PartitionError("file size cannot be negative", file_size=file_size)

    total = -(-file_size // chunk_length)
    return [
        ChunkDescriptor(
            index=i,
            start=i * chunk_length,
            end=min((i + 1) * chunk_length, file_size),
        )
        for i in range(total)
    ]


def read_chunk(source: SourceFile, chunk: ChunkDescriptor) -> bytes:
    """Read the bytes of one chunk.

    Raises:
        PartitionError: If the file shrank since it was partitioned.
    """
    data = source.read_range(chunk.start, chunk.end)
    if len(data) != chunk.length:
        raise PartitionError(
            f"chunk {chunk.index} short read ({len(data)} of {chunk.length} bytes)",
            file_size=os.path.getsize(source.path),
        )
    return data
