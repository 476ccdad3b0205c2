"""Tests for resumable upload sessions against a fake chunk store."""

from __future__ import annotations

import asyncio
import hashlib
import json
import os

import httpx
import pytest

from chunkctl.core.client import StoreClient
from chunkctl.core.exceptions import (
    ChunkUploadError,
    CompletionError,
    HashMismatchError,
    MetadataFetchError,
    PartitionError,
    SessionCollisionError,
    SizeMismatchError,
    TransferError,
    ValidationError,
)
from chunkctl.core.progress_store import JsonFileProgressStore, MemoryProgressStore
from chunkctl.models import ProgressRecord, SessionState, TransferProgress
from chunkctl.services.uploads import RecordRetention, UploadSessionManager, upload_file
from chunkctl.services.verification import DeliveryMode
from chunkctl.transfer.chunking import SourceFile
from chunkctl.transfer.session_id import SessionIdMode, derive_session_id

MiB = 1024 * 1024
KiB = 1024


def _manager(fake_store, store=None, **kwargs) -> UploadSessionManager:
    client = StoreClient("http://store.test", transport=fake_store.transport)
    return UploadSessionManager(client, store, **kwargs)


# =============================================================================
# Happy path
# =============================================================================


class TestUploadHappyPath:
    @pytest.mark.asyncio
    async def test_twelve_mib_in_three_chunks(self, fake_store, make_file) -> None:
        path = make_file("video.mp4", 12 * MiB)
        updates: list[TransferProgress] = []

        result = await _manager(fake_store).start_session(path, updates.append)

        assert sorted(fake_store.chunk_calls) == [0, 1, 2]
        sizes = {i: len(b) for i, b in fake_store.chunks["dmlkZW8ubXA0"].items()}
        assert sizes == {0: 5 * MiB, 1: 5 * MiB, 2: 2 * MiB}
        assert updates[-1].percent == 100.0
        assert result.session_id == "dmlkZW8ubXA0"
        assert result.uploaded
        assert result.verified
        assert result.state is SessionState.DONE
        assert result.artifact is not None
        assert result.artifact.data == path.read_bytes()

    @pytest.mark.asyncio
    async def test_progress_is_monotonic(self, fake_store, make_file) -> None:
        path = make_file(size=10 * KiB)
        updates: list[TransferProgress] = []

        await _manager(fake_store, chunk_size=KiB).start_session(path, updates.append)

        percents = [u.percent for u in updates]
        assert percents == sorted(percents)
        assert percents[0] == 0.0
        assert percents[-1] == 100.0
        assert updates[-1].message == "Completed!"
        assert updates[-1].phase is SessionState.COMPLETING

    @pytest.mark.asyncio
    async def test_same_whole_file_hash_on_every_chunk(self, fake_store, make_file) -> None:
        path = make_file(size=3 * KiB)

        await _manager(fake_store, chunk_size=KiB).start_session(path)

        expected = hashlib.sha256(path.read_bytes()).hexdigest()
        assert fake_store.hashes[derive_session_id(path.name)] == expected

    @pytest.mark.asyncio
    async def test_complete_after_all_chunks(self, fake_store, make_file) -> None:
        path = make_file(size=4 * KiB)

        await _manager(fake_store, chunk_size=KiB).start_session(path)

        routes = [p.split("/")[1] for _, p in fake_store.calls]
        first_complete = routes.index("complete")
        assert routes[:first_complete] == ["upload"] * 4
        assert routes[first_complete:] == ["complete", "metadata", "download"]

    @pytest.mark.asyncio
    async def test_record_deleted_after_success(self, fake_store, make_file) -> None:
        store = MemoryProgressStore()

        await _manager(fake_store, store, chunk_size=KiB).start_session(make_file(size=KiB))

        assert store.keys() == []

    @pytest.mark.asyncio
    async def test_zero_byte_file(self, fake_store, make_file) -> None:
        path = make_file("empty.txt", data=b"")
        updates: list[TransferProgress] = []

        result = await _manager(fake_store).start_session(path, updates.append)

        assert fake_store.chunk_calls == []
        assert fake_store.called("POST", "/complete/")
        assert result.total_chunks == 0
        assert result.verified
        assert updates and all(u.percent == 100.0 for u in updates)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, make_file) -> None:
        in_flight = 0
        peak = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            if request.url.path == "/upload":
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
            return httpx.Response(200)

        client = StoreClient("http://store.test", transport=httpx.MockTransport(handler))
        manager = UploadSessionManager(client, chunk_size=KiB, max_concurrency=2)

        result = await manager.start_session(make_file(size=8 * KiB))

        assert 1 <= peak <= 2
        assert result.uploaded
        # Empty metadata body
        assert isinstance(result.verification_error, MetadataFetchError)

    @pytest.mark.asyncio
    async def test_content_mode_session_id(self, fake_store, make_file) -> None:
        path = make_file("video.mp4", KiB)
        manager = _manager(fake_store, session_id_mode=SessionIdMode.CONTENT)

        result = await manager.start_session(path)

        assert result.session_id != derive_session_id("video.mp4")
        assert result.uploaded

    def test_rejects_bad_settings(self, fake_store) -> None:
        with pytest.raises(ValidationError):
            _manager(fake_store, chunk_size=0)
        with pytest.raises(ValidationError):
            _manager(fake_store, max_concurrency=0)


# =============================================================================
# Failures
# =============================================================================


class TestUploadFailures:
    @pytest.mark.asyncio
    async def test_chunk_failure_aborts_session(self, fake_store, make_file) -> None:
        path = make_file(size=12 * MiB)
        fake_store.chunk_status[2] = 500
        store = MemoryProgressStore()

        with pytest.raises(ChunkUploadError) as exc_info:
            await _manager(fake_store, store).start_session(path)

        assert exc_info.value.chunk_index == 2
        assert not fake_store.called("POST", "/complete/")
        assert store.get(derive_session_id(path.name)) is None

    @pytest.mark.asyncio
    async def test_completion_failure(self, fake_store, make_file) -> None:
        fake_store.complete_status = 500
        store = MemoryProgressStore()

        with pytest.raises(CompletionError):
            await _manager(fake_store, store).start_session(make_file(size=KiB))

        assert store.keys() == []
        assert not fake_store.called("GET", "/metadata/")

    @pytest.mark.asyncio
    async def test_keep_on_failure_retains_record(self, fake_store, make_file) -> None:
        path = make_file(size=4 * KiB)
        fake_store.chunk_status[2] = 503
        store = MemoryProgressStore()
        manager = _manager(
            fake_store,
            store,
            chunk_size=KiB,
            max_concurrency=1,
            retention=RecordRetention.KEEP_ON_FAILURE,
        )

        with pytest.raises(ChunkUploadError):
            await manager.start_session(path)

        record = ProgressRecord.from_json("x", store.get(derive_session_id(path.name)))
        assert record.uploaded_chunks == {0, 1}
        assert record.total_chunks == 4

    @pytest.mark.asyncio
    async def test_resume_skips_uploaded_chunks(self, fake_store, make_file, tmp_path) -> None:
        path = make_file(size=4 * KiB)
        fake_store.chunk_status[2] = 503
        store = JsonFileProgressStore(tmp_path / "progress")
        options = dict(chunk_size=KiB, max_concurrency=1, retention=RecordRetention.KEEP_ON_FAILURE)

        with pytest.raises(ChunkUploadError):
            await _manager(fake_store, store, **options).start_session(path)

        fake_store.chunk_status.clear()
        fake_store.chunk_calls.clear()
        result = await _manager(fake_store, store, **options).start_session(path)

        assert sorted(fake_store.chunk_calls) == [2, 3]
        assert result.chunks_skipped == 2
        assert result.chunks_uploaded == 2
        assert result.verified
        assert store.keys() == []

    @pytest.mark.asyncio
    async def test_resume_from_legacy_record(self, fake_store, make_file) -> None:
        path = make_file("video.mp4", 3 * KiB)
        session_id = derive_session_id("video.mp4")
        data = path.read_bytes()
        fake_store.chunks[session_id] = {0: data[:KiB]}
        store = MemoryProgressStore({
            session_id: json.dumps({"uploadedChunks": [0], "totalChunks": 3, "fileName": "video.mp4"}),
        })

        result = await _manager(fake_store, store, chunk_size=KiB).start_session(path)

        assert sorted(fake_store.chunk_calls) == [1, 2]
        assert result.verified

    @pytest.mark.asyncio
    async def test_collision_with_other_file(self, fake_store, make_file) -> None:
        path = make_file("video.mp4", 2 * KiB)
        session_id = derive_session_id("video.mp4")
        foreign = ProgressRecord(
            file_name="video.mp4",
            total_chunks=2,
            uploaded_chunks={0},
            file_size=2 * KiB,
            file_hash="0" * 64,
        ).to_json()
        store = MemoryProgressStore({session_id: foreign})

        with pytest.raises(SessionCollisionError) as exc_info:
            await _manager(fake_store, store, chunk_size=KiB).start_session(path)

        assert exc_info.value.field == "fileHash"
        assert fake_store.chunk_calls == []
        assert store.get(session_id) == foreign

    @pytest.mark.asyncio
    async def test_unreadable_record_is_replaced(self, fake_store, make_file) -> None:
        path = make_file("video.mp4", KiB)
        store = MemoryProgressStore({derive_session_id("video.mp4"): "{broken"})

        result = await _manager(fake_store, store).start_session(path)

        assert result.chunks_skipped == 0
        assert result.verified

    @pytest.mark.asyncio
    async def test_file_shrinking_mid_upload_fails_transfer(self, fake_store, make_file) -> None:
        path = make_file(size=3 * KiB)
        source = SourceFile.from_path(path)
        path.write_bytes(os.urandom(2 * KiB + 10))

        with pytest.raises(ChunkUploadError) as exc_info:
            await _manager(fake_store, chunk_size=KiB).start_session(source)

        assert isinstance(exc_info.value, TransferError)
        assert isinstance(exc_info.value.__cause__, PartitionError)
        assert exc_info.value.chunk_index == 2
        assert 2 not in fake_store.chunk_calls
        assert not fake_store.called("POST", "/complete/")


# =============================================================================
# Verification outcome
# =============================================================================


class TestUploadVerification:
    @pytest.mark.asyncio
    async def test_size_mismatch_after_upload(self, fake_store, make_file) -> None:
        path = make_file(size=2 * KiB)
        fake_store.download_override = b"short"
        store = MemoryProgressStore()
        delivered = []

        result = await _manager(fake_store, store).start_session(
            path, on_artifact=delivered.append
        )

        assert result.uploaded
        assert not result.verified
        assert isinstance(result.verification_error, SizeMismatchError)
        assert result.state is SessionState.FAILED
        assert delivered == []
        assert store.keys() == []
        with pytest.raises(SizeMismatchError):
            result.raise_for_verification()

    @pytest.mark.asyncio
    async def test_out_of_order_reassembly_not_verified(self, fake_store, make_file) -> None:
        path = make_file(size=12 * KiB)
        fake_store.assembly_key = str
        delivered = []

        result = await _manager(fake_store, chunk_size=KiB).start_session(
            path, on_artifact=delivered.append
        )

        stored = fake_store.files[derive_session_id(path.name)]
        assert stored != path.read_bytes()
        assert result.uploaded
        assert not result.verified
        assert isinstance(result.verification_error, HashMismatchError)
        assert result.verification_error.expected == result.file_hash
        assert delivered == []
        assert result.artifact is None


# =============================================================================
# Blocking entry point
# =============================================================================


def test_upload_file_blocking(fake_store, make_file) -> None:
    path = make_file("notes.txt", data=b"hello world")
    seen = []

    result = upload_file(
        base_url="http://store.test",
        path=path,
        transport=fake_store.transport,
        on_artifact=seen.append,
    )

    assert result.verified
    assert [a.data for a in seen] == [b"hello world"]


def test_upload_file_provisional_reports_verified(fake_store, make_file) -> None:
    path = make_file("notes.txt", data=b"hello world")
    events: list[str] = []

    result = upload_file(
        base_url="http://store.test",
        path=path,
        delivery=DeliveryMode.PROVISIONAL,
        transport=fake_store.transport,
        on_artifact=lambda artifact: events.append("artifact"),
        on_verified=lambda artifact: events.append("verified"),
    )

    assert result.verified
    assert events == ["artifact", "verified"]
