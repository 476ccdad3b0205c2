"""Resumable chunked upload sessions.

A session partitions a file, uploads the chunks the progress record does not
list yet, asks the store to reassemble them, and verifies the stored copy.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from pathlib import Path

import httpx

from chunkctl.core.client import StoreClient
from chunkctl.core.exceptions import (
    ChunkUploadError,
    PartitionError,
    SessionCollisionError,
    VerificationError,
)
from chunkctl.core.logging import LogContext
from chunkctl.core.progress_store import MemoryProgressStore, ProgressStore
from chunkctl.core.validation import validate_chunk_size, validate_workers
from chunkctl.models.progress import Artifact, SessionResult, SessionState, TransferProgress
from chunkctl.models.record import ProgressRecord
from chunkctl.transfer.chunking import ChunkDescriptor, SourceFile, partition, read_chunk
from chunkctl.transfer.constants import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_CONCURRENCY
from chunkctl.transfer.hashing import hash_file
from chunkctl.transfer.retry import NO_RETRY, RetryPolicy
from chunkctl.transfer.session_id import SessionIdMode, session_id_for

from .base import BaseService
from .verification import ArtifactCallback, DeliveryMode, VerificationService

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[TransferProgress], None]


class RecordRetention(Enum):
    """When the progress record is removed at the end of a session.

    ALWAYS_DELETE: on every terminal path, success or failure.
    KEEP_ON_FAILURE: only once the store acknowledged completion, so a failed
        run resumes where it stopped.
    """

    ALWAYS_DELETE = "always-delete"
    KEEP_ON_FAILURE = "keep-on-failure"


async def _run_all(
    worker: Callable[[ChunkDescriptor], Awaitable[None]],
    chunks: Sequence[ChunkDescriptor],
) -> None:
    """Run one task per chunk and wait for all of them.

    The first failure cancels the tasks still running and is re-raised;
    nothing that finishes afterwards counts toward completion.
    """
    tasks = [asyncio.create_task(worker(c), name=f"chunk-{c.index}") for c in chunks]
    if not tasks:
        return

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in tasks:
        if task in done and not task.cancelled() and task.exception() is not None:
            raise task.exception()  # type: ignore[misc]


class UploadSessionManager(BaseService):
    """Owns the progress record of each session it runs."""

    def __init__(
        self,
        client: StoreClient,
        store: ProgressStore | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        retry: RetryPolicy = NO_RETRY,
        session_id_mode: SessionIdMode = SessionIdMode.NAME,
        retention: RecordRetention = RecordRetention.ALWAYS_DELETE,
        delivery: DeliveryMode = DeliveryMode.VERIFIED,
    ) -> None:
        """Initialize the manager.

        Args:
            client: Store client.
            store: Progress record store (defaults to in-memory).
            chunk_size: Bytes per chunk.
            max_concurrency: Chunk uploads in flight at once.
            retry: Per-chunk retry policy.
            session_id_mode: Session id strategy.
            retention: When progress records are removed.
            delivery: When the retrieved artifact is delivered.
        """
        super().__init__(client)
        self.store: ProgressStore = store if store is not None else MemoryProgressStore()
        self.chunk_size = validate_chunk_size(chunk_size)
        self.max_concurrency = validate_workers(max_concurrency)
        self.retry = retry
        self.session_id_mode = session_id_mode
        self.retention = retention
        self.delivery = delivery
        self.verifier = VerificationService(client)

    # =========================================================================
    # Progress Records
    # =========================================================================

    @staticmethod
    def read_record(store: ProgressStore, session_id: str) -> ProgressRecord | None:
        """Return the record stored under ``session_id``, if readable."""
        raw = store.get(session_id)
        if raw is None:
            return None
        try:
            return ProgressRecord.from_json(session_id, raw)
        except ValueError as e:
            logger.warning("Ignoring unreadable progress record %s: %s", session_id, e)
            return None

    def load_record(self, session_id: str) -> ProgressRecord | None:
        return self.read_record(self.store, session_id)

    def _save_record(self, record: ProgressRecord) -> None:
        self.store.set(record.session_id, record.to_json())

    def _open_record(
        self,
        session_id: str,
        source: SourceFile,
        total_chunks: int,
        file_hash: str,
    ) -> ProgressRecord:
        """Reuse the stored record for this file or start a fresh one.

        Raises:
            SessionCollisionError: If the stored record describes another file.
        """
        record = self.load_record(session_id)
        if record is None:
            record = ProgressRecord(
                session_id=session_id,
                file_name=source.name,
                total_chunks=total_chunks,
                file_size=source.size,
                file_hash=file_hash,
            )
        else:
            checks = (
                ("fileName", record.file_name, source.name),
                ("fileSize", record.file_size, source.size),
                ("fileHash", record.file_hash, file_hash),
                ("totalChunks", record.total_chunks, total_chunks),
            )
            for field, recorded, current in checks:
                if recorded is not None and recorded != current:
                    raise SessionCollisionError(session_id, field, recorded, current)
            record.file_size = source.size
            record.file_hash = file_hash
            logger.info(
                "Resuming %s: %d of %d chunks already uploaded",
                session_id,
                record.uploaded_count,
                total_chunks,
            )

        self._save_record(record)
        return record

    def _release_record(self, session_id: str, completed: bool) -> None:
        if completed or self.retention is RecordRetention.ALWAYS_DELETE:
            self.store.delete(session_id)
        else:
            logger.info("Keeping progress record %s for resume", session_id)

    # =========================================================================
    # Session
    # =========================================================================

    async def start_session(
        self,
        source: SourceFile | Path | str,
        progress_callback: ProgressCallback | None = None,
        *,
        on_artifact: ArtifactCallback | None = None,
        on_verified: ArtifactCallback | None = None,
    ) -> SessionResult:
        """Upload a file in chunks, complete it, then verify the stored copy.

        Args:
            source: File to upload.
            progress_callback: Receives a TransferProgress per acknowledged
                chunk and a final one at 100% once every chunk landed.
            on_artifact: Receives the retrieved artifact on delivery.
            on_verified: Receives the artifact once all checks pass.

        Returns:
            SessionResult. Verification failures are reported on
            ``verification_error`` rather than raised.

        Raises:
            PartitionError: If the file cannot be partitioned.
            SessionCollisionError: If another file's record uses the same id.
            ChunkUploadError: If any chunk upload fails.
            CompletionError: If the store refuses to complete.
        """
        if not isinstance(source, SourceFile):
            source = SourceFile.from_path(source)

        session_id = session_id_for(source.name, source.size, source.modified, self.session_id_mode)
        chunks = partition(source.size, self.chunk_size)
        file_hash = await asyncio.to_thread(hash_file, source.path)
        record = self._open_record(session_id, source, len(chunks), file_hash)

        result = SessionResult(
            session_id=session_id,
            file_name=source.name,
            file_size=source.size,
            file_hash=file_hash,
            total_chunks=len(chunks),
            chunks_uploaded=0,
            chunks_skipped=record.uploaded_count,
            duration=0.0,
        )
        delivered: list[Artifact] = []

        def deliver(artifact: Artifact) -> None:
            delivered.append(artifact)
            self._report(on_artifact, artifact)

        with LogContext("upload session", logger, session=session_id, file=source.name) as log:
            try:
                result.state = SessionState.UPLOADING
                result.chunks_uploaded = await self._upload_chunks(
                    source, chunks, record, file_hash, progress_callback
                )

                result.state = SessionState.COMPLETING
                log.debug("all %d chunks acknowledged, completing", len(chunks))
                await self.client.complete(session_id)
                result.uploaded = True

                result.state = SessionState.VERIFYING
                try:
                    result.artifact = await self.verifier.verify_and_retrieve(
                        session_id,
                        source.name,
                        source.size,
                        expected_hash=file_hash,
                        mode=self.delivery,
                        on_artifact=deliver,
                        on_verified=on_verified,
                    )
                    result.state = SessionState.DONE
                except VerificationError as e:
                    log.warning("verification failed: %s", e)
                    result.state = SessionState.FAILED
                    result.verification_error = e
                    result.errors.append(str(e))
                    if delivered:
                        result.artifact = delivered[-1]
            except Exception:
                result.state = SessionState.FAILED
                raise
            finally:
                self._release_record(session_id, completed=result.uploaded)
                result.duration = log.elapsed

        return result

    async def _upload_chunks(
        self,
        source: SourceFile,
        chunks: list[ChunkDescriptor],
        record: ProgressRecord,
        file_hash: str,
        progress_callback: ProgressCallback | None,
    ) -> int:
        """Upload every chunk missing from ``record``; return how many were sent."""
        total = len(chunks)
        todo = [chunks[i] for i in record.pending()]
        lock = asyncio.Lock()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        sent = 0

        self._report(
            progress_callback,
            TransferProgress(
                phase=SessionState.UPLOADING,
                current=record.uploaded_count,
                total=total,
                message=f"Uploading {len(todo)} of {total} chunks",
            ),
        )

        async def upload_one(chunk: ChunkDescriptor) -> None:
            nonlocal sent
            async with semaphore:
                try:
                    data = await asyncio.to_thread(read_chunk, source, chunk)
                except PartitionError as e:
                    raise ChunkUploadError(record.session_id, chunk.index, str(e)) from e
                await self.client.upload_chunk(
                    record.session_id, chunk.index, data, file_hash, retry=self.retry
                )
            async with lock:
                record.mark_uploaded(chunk.index)
                self._save_record(record)
                sent += 1
                logger.debug(
                    "Chunk %d acknowledged (%d/%d)", chunk.index, record.uploaded_count, total
                )
                self._report(
                    progress_callback,
                    TransferProgress(
                        phase=SessionState.UPLOADING,
                        current=record.uploaded_count,
                        total=total,
                        chunk_index=chunk.index,
                        message=f"Uploaded {record.uploaded_count}/{total}",
                    ),
                )

        start = time.monotonic()
        await _run_all(upload_one, todo)
        logger.info("Uploaded %d chunks in %.2fs", sent, time.monotonic() - start)

        self._report(
            progress_callback,
            TransferProgress(
                phase=SessionState.COMPLETING,
                current=total,
                total=total,
                message="Completed!",
            ),
        )
        return sent


# =============================================================================
# Blocking Entry Points
# =============================================================================


def upload_file(
    *,
    base_url: str,
    path: Path,
    store: ProgressStore | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    retry: RetryPolicy = NO_RETRY,
    session_id_mode: SessionIdMode = SessionIdMode.NAME,
    retention: RecordRetention = RecordRetention.ALWAYS_DELETE,
    delivery: DeliveryMode = DeliveryMode.VERIFIED,
    timeout: float = 30,
    verify_ssl: bool = True,
    progress_callback: ProgressCallback | None = None,
    on_artifact: ArtifactCallback | None = None,
    on_verified: ArtifactCallback | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SessionResult:
    """Run one upload session to completion from synchronous code.

    Args:
        base_url: Store URL.
        path: File to upload.
        store: Progress record store.
        chunk_size: Bytes per chunk.
        max_concurrency: Chunk uploads in flight at once.
        retry: Per-chunk retry policy.
        session_id_mode: Session id strategy.
        retention: When progress records are removed.
        delivery: When the retrieved artifact is delivered.
        timeout: HTTP timeout in seconds.
        verify_ssl: Whether to verify TLS certificates.
        progress_callback: Optional callback for progress updates.
        on_artifact: Optional callback receiving the retrieved artifact.
        on_verified: Optional callback receiving the artifact once verified.
        transport: Optional httpx transport (tests).

    Returns:
        SessionResult with results.
    """

    async def _run() -> SessionResult:
        async with StoreClient(
            base_url, timeout=timeout, verify_ssl=verify_ssl, transport=transport
        ) as client:
            manager = UploadSessionManager(
                client,
                store,
                chunk_size=chunk_size,
                max_concurrency=max_concurrency,
                retry=retry,
                session_id_mode=session_id_mode,
                retention=retention,
                delivery=delivery,
            )
            return await manager.start_session(
                SourceFile.from_path(path),
                progress_callback,
                on_artifact=on_artifact,
                on_verified=on_verified,
            )

    return asyncio.run(_run())


def verify_file(
    *,
    base_url: str,
    session_id: str,
    original_name: str,
    original_size: int,
    expected_hash: str | None = None,
    timeout: float = 30,
    verify_ssl: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Artifact:
    """Verify and retrieve an already-completed upload from synchronous code."""

    async def _run() -> Artifact:
        async with StoreClient(
            base_url, timeout=timeout, verify_ssl=verify_ssl, transport=transport
        ) as client:
            return await VerificationService(client).verify_and_retrieve(
                session_id, original_name, original_size, expected_hash=expected_hash
            )

    return asyncio.run(_run())
