"""Progress models for tracking session status.

Provides dataclasses for progress callbacks, verification outcomes, the
retrieved artifact and the session summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from chunkctl.core.exceptions import VerificationError


class SessionState(Enum):
    """States of one upload session."""

    INIT = "init"
    UPLOADING = "uploading"
    COMPLETING = "completing"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.DONE, SessionState.FAILED)


@dataclass
class TransferProgress:
    """Progress information for upload callbacks."""

    phase: SessionState
    current: int = 0
    total: int = 0
    message: str = ""
    chunk_index: Optional[int] = None

    @property
    def percent(self) -> float:
        """Calculate completion percentage."""
        if self.total == 0:
            return 100.0 if self.phase != SessionState.INIT else 0.0
        return (self.current / self.total) * 100

    @property
    def is_complete(self) -> bool:
        """True once every chunk has been acknowledged."""
        return self.phase != SessionState.INIT and self.current >= self.total


@dataclass
class VerificationResult:
    """Outcome of the three post-download checks."""

    name_matches: bool = False
    size_matches: bool = False
    hash_matches: bool = False
    expected_hash: str = ""
    actual_hash: str = ""

    @property
    def passed(self) -> bool:
        return self.name_matches and self.size_matches and self.hash_matches


@dataclass
class Artifact:
    """The reassembled file as retrieved from the store."""

    name: str
    session_id: str
    data: bytes
    verification: VerificationResult = field(default_factory=VerificationResult)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def verified(self) -> bool:
        return self.verification.passed

    def save(self, path: Path) -> Path:
        """Write the artifact to ``path``; a directory gets the original name."""
        path = Path(path)
        if path.is_dir():
            path = path / self.name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path


@dataclass
class SessionResult:
    """Summary of a complete upload-and-verify session.

    ``uploaded`` and ``verified`` are independent outcomes: a session can
    upload successfully and still fail verification.
    """

    session_id: str
    file_name: str
    file_size: int
    file_hash: str
    total_chunks: int
    chunks_uploaded: int
    chunks_skipped: int
    duration: float
    uploaded: bool = False
    state: SessionState = SessionState.INIT
    artifact: Optional[Artifact] = None
    verification_error: Optional["VerificationError"] = None
    errors: List[str] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return self.artifact is not None and self.artifact.verified

    @property
    def size_mb(self) -> float:
        return self.file_size / (1024 * 1024)

    @property
    def throughput_mbps(self) -> float:
        """Calculate upload throughput in MB/s."""
        if self.duration == 0:
            return 0.0
        return self.size_mb / self.duration

    def raise_for_verification(self) -> None:
        """Re-raise the verification failure, if any."""
        if self.verification_error is not None:
            raise self.verification_error

    def to_dict(self) -> dict[str, object]:
        return {
            "session_id": self.session_id,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "file_hash": self.file_hash,
            "total_chunks": self.total_chunks,
            "chunks_uploaded": self.chunks_uploaded,
            "chunks_skipped": self.chunks_skipped,
            "duration": round(self.duration, 3),
            "uploaded": self.uploaded,
            "verified": self.verified,
            "state": self.state.value,
            "errors": self.errors,
        }
