"""Session identifiers correlating every request of one upload.

The default id is derived from the file name alone so the store can decode
it back into the original name. Two files sharing a name share an id; the
session manager detects that case from the stored record. ``content`` mode
folds size and modification time into the id instead.
"""

from __future__ import annotations

import base64
import hashlib
from enum import Enum
from urllib.parse import quote, unquote

# Characters encodeURIComponent leaves alone, besides the ones quote() never escapes.
_URI_COMPONENT_SAFE = "!*'()"


class SessionIdMode(Enum):
    """How a session id is derived from a file."""

    NAME = "name"
    CONTENT = "content"


def _urlsafe_b64(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def derive_session_id(file_name: str) -> str:
    """Turn a file name into a stable, transport-safe session id.

    The name is percent-encoded as a URI component, base64-encoded with the
    URL-safe alphabet, and stripped of ``=`` padding.

    Args:
        file_name: Original file name.

    Returns:
        Session id containing only ``A-Z a-z 0-9 - _``.
    """
    encoded = quote(file_name, safe=_URI_COMPONENT_SAFE, encoding="utf-8")
    return _urlsafe_b64(encoded.encode("ascii"))


def decode_session_id(session_id: str) -> str:
    """Recover the file name from a name-derived session id.

    Raises:
        ValueError: If the id is not valid URL-safe base64.
    """
    padded = session_id + "=" * (-len(session_id) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        return unquote(raw.decode("ascii"), encoding="utf-8", errors="strict")
    except (UnicodeError, ValueError) as e:
        raise ValueError(f"Not a name-derived session id: {session_id!r}") from e


def derive_content_session_id(file_name: str, file_size: int, modified: float) -> str:
    """Session id scoped to one concrete file rather than its name."""
    digest = hashlib.sha256(f"{file_name}\0{file_size}\0{modified!r}".encode()).digest()
    return _urlsafe_b64(digest)


def session_id_for(
    file_name: str,
    file_size: int,
    modified: float,
    mode: SessionIdMode = SessionIdMode.NAME,
) -> str:
    """Derive a session id using the requested strategy."""
    if mode is SessionIdMode.CONTENT:
        return derive_content_session_id(file_name, file_size, modified)
    return derive_session_id(file_name)
