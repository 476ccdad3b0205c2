"""Core modules for chunkctl."""

from chunkctl.core.client import StoreClient
from chunkctl.core.config import CONFIG_DIR, CONFIG_FILE, PROGRESS_DIR, Config, Profile
from chunkctl.core.exceptions import (
    ChunkctlError,
    ChunkUploadError,
    CompletionError,
    ConfigurationError,
    ConnectionError,
    DownloadError,
    HashMismatchError,
    MetadataFetchError,
    NameMismatchError,
    NetworkError,
    OperationError,
    PartitionError,
    ProfileNotFoundError,
    RetryExhaustedError,
    SessionCollisionError,
    SizeMismatchError,
    TransferError,
    ValidationError,
    VerificationError,
)
from chunkctl.core.logging import LogContext, get_logger, setup_logging
from chunkctl.core.progress_store import JsonFileProgressStore, MemoryProgressStore, ProgressStore
from chunkctl.core.validation import (
    validate_chunk_size,
    validate_retries,
    validate_server_url,
    validate_timeout,
    validate_workers,
)

__all__ = [
    # Exceptions
    "ChunkctlError",
    "ConfigurationError",
    "ProfileNotFoundError",
    "ValidationError",
    "PartitionError",
    "ConnectionError",
    "NetworkError",
    "RetryExhaustedError",
    "OperationError",
    "TransferError",
    "ChunkUploadError",
    "CompletionError",
    "SessionCollisionError",
    "VerificationError",
    "MetadataFetchError",
    "NameMismatchError",
    "DownloadError",
    "SizeMismatchError",
    "HashMismatchError",
    # Validation
    "validate_server_url",
    "validate_chunk_size",
    "validate_workers",
    "validate_timeout",
    "validate_retries",
    # Config
    "Config",
    "Profile",
    "CONFIG_DIR",
    "CONFIG_FILE",
    "PROGRESS_DIR",
    # Client
    "StoreClient",
    # Progress store
    "ProgressStore",
    "MemoryProgressStore",
    "JsonFileProgressStore",
    # Logging
    "get_logger",
    "setup_logging",
    "LogContext",
]
