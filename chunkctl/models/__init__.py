"""Data models for chunkctl.

Provides Pydantic models for persisted and wire shapes and dataclasses for
session progress tracking.
"""

from __future__ import annotations

from .base import BaseModel
from .progress import (
    Artifact,
    SessionResult,
    SessionState,
    TransferProgress,
    VerificationResult,
)
from .record import ProgressRecord, RemoteMetadata

__all__ = [
    # Base
    "BaseModel",
    # Persisted / wire
    "ProgressRecord",
    "RemoteMetadata",
    # Progress
    "SessionState",
    "TransferProgress",
    "VerificationResult",
    "Artifact",
    "SessionResult",
]
