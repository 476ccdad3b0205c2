"""Exception hierarchy for chunkctl.

Provides typed exceptions for different failure modes with clear error messages.
Transfer failures ("your upload didn't make it") and verification failures
("your upload succeeded but the retrieved copy doesn't match") are kept in
separate branches so callers can tell them apart.
"""

from __future__ import annotations

from typing import Any


class ChunkctlError(Exception):
    """Base exception for all chunkctl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ChunkctlError):
    """Error in configuration (missing, invalid, or malformed)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ChunkctlError):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidURLError(ValidationError):
    """Invalid URL format."""

    def __init__(self, url: str, reason: str = ""):
        msg = f"Invalid URL: {url}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="url", value=url)
        self.url = url
        self.reason = reason


class PartitionError(ValidationError):
    """File size or chunk length cannot be partitioned."""

    def __init__(self, reason: str, file_size: int | None = None, chunk_length: int | None = None):
        super().__init__(f"Cannot partition file: {reason}")
        if file_size is not None:
            self.details["file_size"] = file_size
        if chunk_length is not None:
            self.details["chunk_length"] = chunk_length
        self.file_size = file_size
        self.chunk_length = chunk_length


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(ChunkctlError):
    """Base class for connection-related errors."""

    def __init__(self, message: str, url: str | None = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)
        self.url = url


class NetworkError(ConnectionError):
    """Network-level error (DNS, TCP, TLS, timeout)."""

    def __init__(self, url: str, cause: str | None = None):
        msg = f"Network error connecting to {url}"
        if cause:
            msg = f"{msg}: {cause}"
        super().__init__(msg, url)
        self.cause = cause


class ServerUnreachableError(ConnectionError):
    """Server is not reachable."""

    def __init__(self, url: str):
        super().__init__(f"Server unreachable: {url}", url)


class RetryExhaustedError(ConnectionError):
    """All retry attempts failed."""

    def __init__(self, operation: str, attempts: int, last_error: Exception | None = None):
        msg = f"Operation '{operation}' failed after {attempts} attempts"
        if last_error:
            msg = f"{msg}: {last_error}"
        super().__init__(msg)
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


# =============================================================================
# Operation Errors
# =============================================================================


class OperationError(ChunkctlError):
    """Error during an operation."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        full_details: dict[str, Any] = {"operation": operation}
        if details:
            full_details.update(details)
        super().__init__(message, full_details)
        self.operation = operation


# =============================================================================
# Transfer Errors (the upload did not make it)
# =============================================================================


class TransferError(OperationError):
    """The upload did not reach the remote store."""

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        full_details = details or {}
        if session_id:
            full_details["session"] = session_id
        super().__init__("upload", message, full_details)
        self.session_id = session_id


class ChunkUploadError(TransferError):
    """A chunk POST failed at the network or was refused by the store."""

    def __init__(
        self,
        session_id: str,
        chunk_index: int,
        reason: str,
        status_code: int | None = None,
    ):
        details: dict[str, Any] = {"chunk": chunk_index}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(f"Chunk {chunk_index} upload failed: {reason}", session_id, details)
        self.chunk_index = chunk_index
        self.reason = reason
        self.status_code = status_code


class CompletionError(TransferError):
    """The store refused or failed to finalize the upload."""

    def __init__(self, session_id: str, reason: str, status_code: int | None = None):
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(f"Completing upload failed: {reason}", session_id, details)
        self.reason = reason
        self.status_code = status_code


class SessionCollisionError(TransferError):
    """A stored progress record belongs to a different file with the same id."""

    def __init__(self, session_id: str, field: str, recorded: Any, current: Any):
        super().__init__(
            f"Progress record for this session belongs to a different file "
            f"({field}: recorded {recorded!r}, current {current!r})",
            session_id,
            {"field": field},
        )
        self.field = field
        self.recorded = recorded
        self.current = current


# =============================================================================
# Verification Errors (the upload succeeded, the copy doesn't match)
# =============================================================================


class VerificationError(OperationError):
    """The stored artifact could not be retrieved or does not match the source."""

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        full_details = details or {}
        if session_id:
            full_details["session"] = session_id
        super().__init__("verify", message, full_details)
        self.session_id = session_id


class MetadataFetchError(VerificationError):
    """Remote metadata could not be fetched or parsed."""

    def __init__(self, session_id: str, reason: str):
        super().__init__(f"Fetching metadata failed: {reason}", session_id)
        self.reason = reason


class DownloadError(VerificationError):
    """The reassembled artifact could not be downloaded."""

    def __init__(self, session_id: str, reason: str):
        super().__init__(f"Download failed: {reason}", session_id)
        self.reason = reason


class _MismatchError(VerificationError):
    """Common shape of the three comparison failures."""

    label = "value"

    def __init__(self, session_id: str, expected: Any, actual: Any):
        super().__init__(
            f"File {self.label} does not match",
            session_id,
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class NameMismatchError(_MismatchError):
    """Stored name differs from the source file name."""

    label = "name"


class SizeMismatchError(_MismatchError):
    """Downloaded byte length differs from the source file size."""

    label = "size"


class HashMismatchError(_MismatchError):
    """Downloaded content hash differs from the stored or source hash."""

    label = "hash"
