"""Retrieval and round-trip verification of a committed upload."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from chunkctl.core.exceptions import HashMismatchError, NameMismatchError, SizeMismatchError
from chunkctl.models.progress import Artifact, VerificationResult
from chunkctl.transfer.hashing import hash_bytes

from .base import BaseService

logger = logging.getLogger(__name__)

ArtifactCallback = Callable[[Artifact], None]


class DeliveryMode(Enum):
    """When the retrieved artifact is handed to the caller.

    VERIFIED: only after name, size and hash all match.
    PROVISIONAL: right after the size check, followed by an ``on_verified``
        event once the hash matches. A hash mismatch does not retract the
        artifact already delivered.
    """

    VERIFIED = "verified"
    PROVISIONAL = "provisional"


class VerificationService(BaseService):
    """Fetches the stored artifact and proves it matches the source."""

    async def verify_and_retrieve(
        self,
        session_id: str,
        original_name: str,
        original_size: int,
        *,
        expected_hash: str | None = None,
        mode: DeliveryMode = DeliveryMode.VERIFIED,
        on_artifact: ArtifactCallback | None = None,
        on_verified: ArtifactCallback | None = None,
    ) -> Artifact:
        """Retrieve the artifact for ``session_id`` and verify it.

        Each step short-circuits on failure: metadata, name, download, size,
        delivery (provisional mode), hash. The downloaded hash must match
        both the stored hash and, when given, ``expected_hash``.

        Args:
            session_id: Session id the file was uploaded under.
            original_name: Name of the source file.
            original_size: Size of the source file in bytes.
            expected_hash: SHA-256 hex digest of the source file.
            mode: Delivery ordering.
            on_artifact: Receives the artifact when it is delivered.
            on_verified: Receives the artifact once all checks pass.

        Returns:
            The verified artifact.

        Raises:
            MetadataFetchError: Metadata could not be fetched.
            NameMismatchError: Stored name differs.
            DownloadError: Artifact could not be downloaded.
            SizeMismatchError: Downloaded length differs.
            HashMismatchError: Downloaded content hash differs.
        """
        result = VerificationResult()

        metadata = await self.client.get_metadata(session_id)
        if metadata.original_name != original_name:
            raise NameMismatchError(session_id, original_name, metadata.original_name)
        result.name_matches = True

        data = await self.client.download(session_id)
        if len(data) != original_size:
            raise SizeMismatchError(session_id, original_size, len(data))
        result.size_matches = True

        artifact = Artifact(
            name=original_name,
            session_id=session_id,
            data=data,
            verification=result,
        )

        if mode is DeliveryMode.PROVISIONAL:
            logger.debug("Delivering %s before hash verification", original_name)
            self._report(on_artifact, artifact)

        actual = await asyncio.to_thread(hash_bytes, data)
        result.expected_hash = expected_hash or metadata.file_hash
        result.actual_hash = actual
        if actual != metadata.file_hash.lower():
            raise HashMismatchError(session_id, metadata.file_hash, actual)
        if expected_hash is not None and actual != expected_hash.lower():
            raise HashMismatchError(session_id, expected_hash, actual)
        result.hash_matches = True

        if mode is DeliveryMode.VERIFIED:
            self._report(on_artifact, artifact)
        self._report(on_verified, artifact)
        return artifact
