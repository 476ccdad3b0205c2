"""Service layer for chunkctl operations.

Provides service classes that drive upload sessions and verification against
the chunk store.
"""

from __future__ import annotations

from .base import BaseService
from .uploads import RecordRetention, UploadSessionManager, upload_file, verify_file
from .verification import DeliveryMode, VerificationService

__all__ = [
    "BaseService",
    "UploadSessionManager",
    "VerificationService",
    "RecordRetention",
    "DeliveryMode",
    "upload_file",
    "verify_file",
]
