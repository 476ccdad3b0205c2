"""Persisted progress record and remote metadata models."""

from __future__ import annotations

import json
from typing import Any

from pydantic import Field, field_serializer, model_validator

from .base import BaseModel


class ProgressRecord(BaseModel):
    """Resumable state of one upload session.

    Serialized with the camelCase field names the local store has always used
    (``uploadedChunks``, ``totalChunks``, ``fileName``). ``fileSize`` and
    ``fileHash`` identify the file the record belongs to.
    """

    session_id: str = Field("", exclude=True)
    file_name: str = Field(..., alias="fileName")
    total_chunks: int = Field(..., alias="totalChunks", ge=0)
    uploaded_chunks: set[int] = Field(default_factory=set, alias="uploadedChunks")
    file_size: int | None = Field(None, alias="fileSize", ge=0)
    file_hash: str | None = Field(None, alias="fileHash")

    @model_validator(mode="after")
    def _check_uploaded_in_range(self) -> ProgressRecord:
        out_of_range = [i for i in self.uploaded_chunks if i < 0 or i >= self.total_chunks]
        if out_of_range:
            raise ValueError(
                f"uploadedChunks {sorted(out_of_range)} outside [0, {self.total_chunks})"
            )
        return self

    @field_serializer("uploaded_chunks")
    def _serialize_uploaded(self, value: set[int]) -> list[int]:
        return sorted(value)

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def mark_uploaded(self, index: int) -> None:
        """Record an acknowledged chunk. The set only ever grows."""
        if index < 0 or index >= self.total_chunks:
            raise ValueError(f"Chunk index {index} outside [0, {self.total_chunks})")
        self.uploaded_chunks.add(index)

    def pending(self) -> list[int]:
        """Indices not yet acknowledged, in ascending order."""
        return [i for i in range(self.total_chunks) if i not in self.uploaded_chunks]

    @property
    def uploaded_count(self) -> int:
        return len(self.uploaded_chunks)

    @property
    def percent(self) -> float:
        if self.total_chunks == 0:
            return 100.0
        return self.uploaded_count / self.total_chunks * 100

    @property
    def is_complete(self) -> bool:
        return self.uploaded_count == self.total_chunks

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_json(self) -> str:
        """Serialize to the persisted JSON form."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, session_id: str, raw: str | bytes | dict[str, Any]) -> ProgressRecord:
        """Parse a persisted record and attach the key it was stored under."""
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else dict(raw)
        record = cls.model_validate(data)
        record.session_id = session_id
        return record


class RemoteMetadata(BaseModel):
    """Metadata the store reports for a committed file."""

    original_name: str
    file_hash: str
    content_type: str | None = None
