"""Shared constants for the transfer protocol.

These defaults match what the store expects out of the box. Raise the
concurrency via ``--workers`` on fast links.
"""

# Bytes per chunk (5 MiB)
DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024

# Chunk uploads in flight at once
DEFAULT_MAX_CONCURRENCY = 4

# Per-chunk retries; 0 means a single failed chunk fails the session
DEFAULT_MAX_RETRIES = 0

# Backoff base in seconds: 2, 4, 8, ...
DEFAULT_RETRY_BACKOFF_BASE = 2.0

# Statuses worth another attempt when retries are enabled
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# Remote store routes
UPLOAD_PATH = "/upload"
COMPLETE_PATH = "/complete/{file_id}"
METADATA_PATH = "/metadata/{file_id}"
DOWNLOAD_PATH = "/download/{file_id}"
