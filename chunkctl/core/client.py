"""Async HTTP client for the chunk store.

Wraps the four store routes (upload, complete, metadata, download) and maps
transport and status failures onto the chunkctl exception hierarchy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from chunkctl.core.exceptions import (
    ChunkUploadError,
    CompletionError,
    ConnectionError,
    DownloadError,
    MetadataFetchError,
    NetworkError,
    RetryExhaustedError,
    ServerUnreachableError,
)
from chunkctl.core.validation import validate_server_url
from chunkctl.models.record import RemoteMetadata
from chunkctl.transfer.constants import (
    COMPLETE_PATH,
    DOWNLOAD_PATH,
    METADATA_PATH,
    UPLOAD_PATH,
)
from chunkctl.transfer.retry import NO_RETRY, RetryPolicy, request_with_retry

# =============================================================================
# Constants
# =============================================================================

DEFAULT_TIMEOUT = 30
DOWNLOAD_READ_SIZE = 64 * 1024


# =============================================================================
# StoreClient
# =============================================================================


@dataclass
class StoreClient:
    """HTTP client for the chunk store REST API."""

    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _client: httpx.AsyncClient | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate and normalize URL."""
        self.base_url = validate_server_url(self.base_url)

    # =========================================================================
    # Client Management
    # =========================================================================

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                verify=self.verify_ssl,
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # =========================================================================
    # Requests
    # =========================================================================

    def _transport_error(self, exc: httpx.TransportError) -> ConnectionError:
        if isinstance(exc, httpx.ConnectError):
            return ServerUnreachableError(self.base_url)
        if isinstance(exc, httpx.TimeoutException):
            return NetworkError(self.base_url, f"Timeout after {self.timeout}s")
        return NetworkError(self.base_url, str(exc) or type(exc).__name__)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Execute a request, converting transport failures.

        Raises:
            ServerUnreachableError: If the connection is refused.
            NetworkError: On timeouts and other transport failures.
        """
        try:
            return await self._get_client().request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise self._transport_error(e) from e

    @staticmethod
    def _status_reason(resp: httpx.Response) -> str:
        text = resp.text.strip()[:200]
        return f"HTTP {resp.status_code}: {text}" if text else f"HTTP {resp.status_code}"

    # =========================================================================
    # Store Routes
    # =========================================================================

    async def post_chunk(
        self,
        file_id: str,
        chunk_index: int,
        data: bytes,
        file_hash: str,
    ) -> httpx.Response:
        """POST one chunk as multipart form data and return the raw response."""
        return await self._get_client().post(
            UPLOAD_PATH,
            data={
                "fileId": file_id,
                "chunkIndex": str(chunk_index),
                "file_hash": file_hash,
            },
            files={"chunk": ("blob", data, "application/octet-stream")},
        )

    async def upload_chunk(
        self,
        file_id: str,
        chunk_index: int,
        data: bytes,
        file_hash: str,
        *,
        retry: RetryPolicy = NO_RETRY,
    ) -> None:
        """Upload one chunk, retrying per ``retry``.

        Raises:
            ChunkUploadError: On transport failure or a non-2xx response.
        """
        try:
            resp = await request_with_retry(
                lambda: self.post_chunk(file_id, chunk_index, data, file_hash),
                policy=retry,
                label=f"chunk {chunk_index}",
            )
        except httpx.TransportError as e:
            cause: Exception = self._transport_error(e)
            if retry.max_retries:
                cause = RetryExhaustedError(f"chunk {chunk_index}", retry.max_retries + 1, cause)
            raise ChunkUploadError(file_id, chunk_index, str(cause)) from e

        if not resp.is_success:
            raise ChunkUploadError(
                file_id, chunk_index, self._status_reason(resp), status_code=resp.status_code
            )

    async def complete(self, file_id: str) -> None:
        """Ask the store to reassemble the uploaded chunks.

        Raises:
            CompletionError: On transport failure or a non-2xx response.
        """
        try:
            resp = await self._request("POST", COMPLETE_PATH.format(file_id=file_id))
        except ConnectionError as e:
            raise CompletionError(file_id, str(e)) from e
        if not resp.is_success:
            raise CompletionError(file_id, self._status_reason(resp), status_code=resp.status_code)

    async def get_metadata(self, file_id: str) -> RemoteMetadata:
        """Fetch name and hash of the committed file.

        Raises:
            MetadataFetchError: On transport failure, non-2xx, or a malformed body.
        """
        try:
            resp = await self._request("GET", METADATA_PATH.format(file_id=file_id))
        except ConnectionError as e:
            raise MetadataFetchError(file_id, str(e)) from e
        if not resp.is_success:
            raise MetadataFetchError(file_id, self._status_reason(resp))
        try:
            return RemoteMetadata.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as e:
            raise MetadataFetchError(file_id, f"malformed metadata: {e}") from e

    async def download(self, file_id: str) -> bytes:
        """Download the reassembled artifact.

        Raises:
            DownloadError: On transport failure or a non-2xx response.
        """
        buffer = bytearray()
        try:
            async with self._get_client().stream(
                "GET", DOWNLOAD_PATH.format(file_id=file_id)
            ) as resp:
                if not resp.is_success:
                    await resp.aread()
                    raise DownloadError(file_id, self._status_reason(resp))
                async for block in resp.aiter_bytes(DOWNLOAD_READ_SIZE):
                    buffer.extend(block)
        except httpx.TransportError as e:
            raise DownloadError(file_id, str(self._transport_error(e))) from e
        return bytes(buffer)
