"""Transfer protocol building blocks for chunkctl.

This module provides the pieces the session manager composes:
- Session id derivation (name-based or content-based)
- Chunk partitioning and range reads
- SHA-256 content hashing
- Per-chunk retry policy

These are internal implementation details. Use `UploadSessionManager` from
`chunkctl.services.uploads` as the public API.
"""

from chunkctl.transfer.chunking import ChunkDescriptor, SourceFile, partition, read_chunk
from chunkctl.transfer.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
)
from chunkctl.transfer.hashing import hash_bytes, hash_file
from chunkctl.transfer.retry import NO_RETRY, RetryPolicy, request_with_retry
from chunkctl.transfer.session_id import (
    SessionIdMode,
    decode_session_id,
    derive_content_session_id,
    derive_session_id,
    session_id_for,
)

__all__ = [
    # Constants
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_MAX_RETRIES",
    # Chunking
    "ChunkDescriptor",
    "SourceFile",
    "partition",
    "read_chunk",
    # Hashing
    "hash_bytes",
    "hash_file",
    # Retry
    "NO_RETRY",
    "RetryPolicy",
    "request_with_retry",
    # Session ids
    "SessionIdMode",
    "decode_session_id",
    "derive_content_session_id",
    "derive_session_id",
    "session_id_for",
]
