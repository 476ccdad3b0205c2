"""Pytest configuration and fixtures for chunkctl tests."""

from __future__ import annotations

import hashlib
import os
import re
from pathlib import Path
from typing import Callable

import httpx
import pytest

from chunkctl.transfer.session_id import decode_session_id

MiB = 1024 * 1024


def parse_multipart(request: httpx.Request) -> dict[str, bytes]:
    """Split a multipart/form-data body into ``{field name: raw value}``."""
    boundary = request.headers["content-type"].split("boundary=", 1)[1].strip('"').encode()
    fields: dict[str, bytes] = {}
    for part in request.content.split(b"--" + boundary):
        if part.strip() in (b"", b"--"):
            continue
        head, _, body = part.partition(b"\r\n\r\n")
        name = re.search(rb'name="([^"]+)"', head)
        assert name is not None
        fields[name.group(1).decode()] = body[:-2] if body.endswith(b"\r\n") else body
    return fields


class FakeChunkStore:
    """In-memory stand-in for the chunk store's four routes.

    Knobs let tests inject failures at each step.
    """

    def __init__(self) -> None:
        self.chunks: dict[str, dict[int, bytes]] = {}
        self.hashes: dict[str, str] = {}
        self.files: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.chunk_calls: list[int] = []
        self.chunk_status: dict[int, int] = {}
        self.complete_status = 200
        self.metadata_status = 200
        self.download_status = 200
        self.name_override: str | None = None
        self.hash_override: str | None = None
        self.download_override: bytes | None = None
        self.assembly_key: Callable[[int], object] = int

    def _json(self, status: int, payload: object) -> httpx.Response:
        return httpx.Response(status, json=payload)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if request.method == "POST" and path == "/upload":
            fields = parse_multipart(request)
            file_id = fields["fileId"].decode()
            index = int(fields["chunkIndex"])
            self.chunk_calls.append(index)
            if index in self.chunk_status:
                return httpx.Response(self.chunk_status[index], text="chunk rejected")
            self.chunks.setdefault(file_id, {})[index] = fields["chunk"]
            self.hashes[file_id] = fields["file_hash"].decode()
            return self._json(200, {"ok": True})

        if request.method == "POST" and path.startswith("/complete/"):
            file_id = path.rsplit("/", 1)[1]
            if self.complete_status != 200:
                return httpx.Response(self.complete_status, text="cannot assemble")
            parts = self.chunks.get(file_id, {})
            self.files[file_id] = b"".join(parts[i] for i in sorted(parts, key=self.assembly_key))
            return self._json(200, {"ok": True})

        if request.method == "GET" and path.startswith("/metadata/"):
            file_id = path.rsplit("/", 1)[1]
            if self.metadata_status != 200 or file_id not in self.files:
                return httpx.Response(self.metadata_status if self.metadata_status != 200 else 404)
            return self._json(200, {
                "original_name": self.name_override or decode_session_id(file_id),
                "file_hash": self.hash_override or hashlib.sha256(self.files[file_id]).hexdigest(),
                "content_type": "application/octet-stream",
            })

        if request.method == "GET" and path.startswith("/download/"):
            file_id = path.rsplit("/", 1)[1]
            if self.download_status != 200 or file_id not in self.files:
                return httpx.Response(self.download_status if self.download_status != 200 else 404)
            data = self.files[file_id] if self.download_override is None else self.download_override
            return httpx.Response(200, content=data)

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def called(self, method: str, prefix: str) -> bool:
        return any(m == method and p.startswith(prefix) for m, p in self.calls)


@pytest.fixture
def fake_store() -> FakeChunkStore:
    """Fresh fake chunk store."""
    return FakeChunkStore()


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a file of ``size`` pseudo-random bytes."""

    def _make(name: str = "video.bin", size: int = 0, data: bytes | None = None) -> Path:
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data if data is not None else os.urandom(size))
        return path

    return _make


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: http://store-test.example.org
    verify_ssl: false
    timeout: 30
    chunk_size: 1048576
    max_concurrency: 2

  production:
    url: https://store.example.org
    verify_ssl: true
    timeout: 60
    max_retries: 3
"""


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from the user's real config and progress records."""
    for name in (
        "CHUNKCTL_URL",
        "CHUNKCTL_PROFILE",
        "CHUNKCTL_VERIFY_SSL",
        "CHUNKCTL_TIMEOUT",
        "CHUNKCTL_CHUNK_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CHUNKCTL_CONFIG", str(tmp_path / "config" / "config.yaml"))
    monkeypatch.setenv("CHUNKCTL_PROGRESS_DIR", str(tmp_path / "progress"))
