"""SHA-256 content hashing for source files and downloaded artifacts."""

from __future__ import annotations

import hashlib
from pathlib import Path

HASH_ALGORITHM = "sha256"
READ_BLOCK_SIZE = 1024 * 1024


def hash_bytes(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data`` (64 characters)."""
    return hashlib.sha256(data).hexdigest()


def hash_file(path: Path, block_size: int = READ_BLOCK_SIZE) -> str:
    """Digest a file in blocks; equal to ``hash_bytes(path.read_bytes())``."""
    digest = hashlib.new(HASH_ALGORITHM)
    with Path(path).open("rb") as f:
        while block := f.read(block_size):
            digest.update(block)
    return digest.hexdigest()
