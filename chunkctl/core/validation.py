"""Input validation helpers for chunkctl.

Each validator returns the normalized value or raises a ValidationError.
"""

from __future__ import annotations

from urllib.parse import urlparse

from chunkctl.core.exceptions import InvalidURLError, ValidationError

# Hard ceiling on a single chunk; larger bodies are rejected by most stores.
MAX_CHUNK_SIZE = 512 * 1024 * 1024
MAX_WORKERS = 64


def validate_server_url(url: str) -> str:
    """Validate and normalize a remote store URL.

    Args:
        url: URL string, e.g. ``http://localhost:8080``.

    Returns:
        URL without trailing slash.

    Raises:
        InvalidURLError: If the URL is empty or not http(s).
    """
    if not url or not url.strip():
        raise InvalidURLError(url or "", "URL is empty")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.netloc:
        raise InvalidURLError(url, "missing host")

    return url.rstrip("/")


def validate_chunk_size(chunk_size: int) -> int:
    """Validate chunk length in bytes."""
    if not isinstance(chunk_size, int) or isinstance(chunk_size, bool):
        raise ValidationError("Chunk size must be an integer", field="chunk_size", value=chunk_size)
    if chunk_size <= 0 or chunk_size > MAX_CHUNK_SIZE:
        raise ValidationError(
            f"Chunk size must be between 1 and {MAX_CHUNK_SIZE} bytes",
            field="chunk_size",
            value=chunk_size,
        )
    return chunk_size


def validate_workers(workers: int) -> int:
    """Validate concurrency limit."""
    if workers < 1 or workers > MAX_WORKERS:
        raise ValidationError(
            f"Workers must be between 1 and {MAX_WORKERS}",
            field="workers",
            value=workers,
        )
    return workers


def validate_timeout(timeout: int) -> int:
    """Validate request timeout in seconds."""
    if timeout <= 0:
        raise ValidationError("Timeout must be positive", field="timeout", value=timeout)
    return timeout


def validate_retries(retries: int) -> int:
    """Validate per-chunk retry count."""
    if retries < 0:
        raise ValidationError("Retries cannot be negative", field="retries", value=retries)
    return retries
