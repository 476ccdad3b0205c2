"""chunkctl - Resumable chunked uploads with round-trip verification.

This package uploads large files to a chunk store in fixed-size pieces:
- Concurrent chunk uploads with progress persisted per session
- Resume of interrupted sessions from the local progress record
- Completion handshake with the store
- Download and SHA-256 verification of the reassembled file
"""

__version__ = "0.1.0"

from chunkctl.core.client import StoreClient
from chunkctl.core.config import Config, Profile
from chunkctl.core.exceptions import (
    ChunkctlError,
    ConfigurationError,
    TransferError,
    ValidationError,
    VerificationError,
)
from chunkctl.core.progress_store import JsonFileProgressStore, MemoryProgressStore
from chunkctl.services.uploads import UploadSessionManager, upload_file

__all__ = [
    "__version__",
    "StoreClient",
    "Config",
    "Profile",
    "UploadSessionManager",
    "upload_file",
    "JsonFileProgressStore",
    "MemoryProgressStore",
    "ChunkctlError",
    "ConfigurationError",
    "TransferError",
    "ValidationError",
    "VerificationError",
]
