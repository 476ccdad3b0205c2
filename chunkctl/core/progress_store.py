"""Local key-value stores for upload progress records.

The session manager only needs ``get``/``set``/``delete`` keyed by session id,
so the storage medium is injected. Values are the JSON text of a
ProgressRecord.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from chunkctl.core.config import PROGRESS_DIR
from chunkctl.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Session ids are URL-safe base64; anything else could escape the directory.
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


@runtime_checkable
class ProgressStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


# =============================================================================
# In-memory store
# =============================================================================


class MemoryProgressStore:
    """Dict-backed store for tests and single-process use."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


# =============================================================================
# JSON file store
# =============================================================================


class JsonFileProgressStore:
    """One ``<key>.json`` file per session in a private directory."""

    def __init__(self, directory: Path | None = None) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding record files.
        """
        self.directory = Path(directory or PROGRESS_DIR)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValidationError("Invalid progress key", field="key", value=key)
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Write atomically: readers see the old record or the new one."""
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            try:
                os.chmod(tmp_name, 0o600)
            except OSError:
                pass  # May fail on some systems
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        logger.debug("Deleted progress record %s", path)

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json") if not p.name.startswith("."))
