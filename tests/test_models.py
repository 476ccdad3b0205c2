"""Tests for record and progress models."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from chunkctl.core.exceptions import SizeMismatchError
from chunkctl.models import (
    Artifact,
    ProgressRecord,
    RemoteMetadata,
    SessionResult,
    SessionState,
    TransferProgress,
    VerificationResult,
)


# =============================================================================
# ProgressRecord
# =============================================================================


class TestProgressRecord:
    def test_persisted_field_names(self) -> None:
        record = ProgressRecord(
            session_id="abc",
            file_name="video.mp4",
            total_chunks=3,
            uploaded_chunks={2, 0},
        )

        data = json.loads(record.to_json())

        assert data == {"fileName": "video.mp4", "totalChunks": 3, "uploadedChunks": [0, 2]}

    def test_hash_and_size_included_when_known(self) -> None:
        record = ProgressRecord(file_name="a", total_chunks=1, file_size=5, file_hash="ab")
        data = json.loads(record.to_json())
        assert data["fileSize"] == 5
        assert data["fileHash"] == "ab"

    def test_from_json_reads_legacy_record(self) -> None:
        raw = '{"uploadedChunks": [0, 1], "totalChunks": 3, "fileName": "video.mp4"}'

        record = ProgressRecord.from_json("dmlkZW8ubXA0", raw)

        assert record.session_id == "dmlkZW8ubXA0"
        assert record.uploaded_chunks == {0, 1}
        assert record.pending() == [2]
        assert record.file_hash is None

    def test_rejects_out_of_range_chunks(self) -> None:
        with pytest.raises(PydanticValidationError):
            ProgressRecord(file_name="a", total_chunks=2, uploaded_chunks={2})

    def test_rejects_malformed_json(self) -> None:
        with pytest.raises(ValueError):
            ProgressRecord.from_json("abc", "{not json")

    def test_mark_uploaded_grows_set(self) -> None:
        record = ProgressRecord(file_name="a", total_chunks=3)
        record.mark_uploaded(1)
        record.mark_uploaded(1)

        assert record.uploaded_count == 1
        assert record.percent == pytest.approx(100 / 3)
        assert not record.is_complete

        with pytest.raises(ValueError):
            record.mark_uploaded(3)

    def test_empty_file_is_complete(self) -> None:
        record = ProgressRecord(file_name="empty", total_chunks=0)
        assert record.is_complete
        assert record.percent == 100.0

    def test_session_id_not_persisted(self) -> None:
        record = ProgressRecord(session_id="abc", file_name="a", total_chunks=0)
        assert "session_id" not in record.to_json()


class TestRemoteMetadata:
    def test_parses_store_payload(self) -> None:
        meta = RemoteMetadata.model_validate(
            {"original_name": "video.mp4", "file_hash": "ab" * 32, "extra": 1}
        )
        assert meta.original_name == "video.mp4"
        assert meta.content_type is None

    def test_name_kept_verbatim(self) -> None:
        meta = RemoteMetadata.model_validate({"original_name": " a.txt ", "file_hash": "x"})
        assert meta.original_name == " a.txt "


# =============================================================================
# Progress / results
# =============================================================================


class TestTransferProgress:
    def test_percent(self) -> None:
        assert TransferProgress(SessionState.UPLOADING, current=1, total=4).percent == 25.0

    def test_empty_file_reports_done(self) -> None:
        progress = TransferProgress(SessionState.UPLOADING, current=0, total=0)
        assert progress.percent == 100.0
        assert progress.is_complete

    def test_init_is_zero(self) -> None:
        assert TransferProgress(SessionState.INIT).percent == 0.0


class TestArtifact:
    def test_save_into_directory(self, tmp_path: Path) -> None:
        artifact = Artifact(name="video.mp4", session_id="s", data=b"abc")

        path = artifact.save(tmp_path)

        assert path == tmp_path / "video.mp4"
        assert path.read_bytes() == b"abc"

    def test_save_to_file(self, tmp_path: Path) -> None:
        artifact = Artifact(name="video.mp4", session_id="s", data=b"abc")
        path = artifact.save(tmp_path / "out" / "copy.mp4")
        assert path.read_bytes() == b"abc"

    def test_verified_requires_all_checks(self) -> None:
        result = VerificationResult(name_matches=True, size_matches=True)
        artifact = Artifact(name="a", session_id="s", data=b"", verification=result)
        assert not artifact.verified
        result.hash_matches = True
        assert artifact.verified


class TestSessionResult:
    def _result(self, **kwargs: object) -> SessionResult:
        defaults: dict[str, object] = dict(
            session_id="s",
            file_name="a",
            file_size=2 * 1024 * 1024,
            file_hash="h",
            total_chunks=1,
            chunks_uploaded=1,
            chunks_skipped=0,
            duration=2.0,
        )
        defaults.update(kwargs)
        return SessionResult(**defaults)  # type: ignore[arg-type]

    def test_throughput(self) -> None:
        assert self._result().throughput_mbps == 1.0
        assert self._result(duration=0.0).throughput_mbps == 0.0

    def test_uploaded_but_not_verified(self) -> None:
        error = SizeMismatchError("s", 2, 1)
        result = self._result(uploaded=True, verification_error=error)

        assert result.uploaded
        assert not result.verified
        with pytest.raises(SizeMismatchError):
            result.raise_for_verification()

    def test_to_dict(self) -> None:
        data = self._result(state=SessionState.DONE).to_dict()
        assert data["state"] == "done"
        assert data["verified"] is False
