"""Tests for chunkctl.core.validation module."""

from __future__ import annotations

import pytest

from chunkctl.core.exceptions import InvalidURLError, ValidationError
from chunkctl.core.validation import (
    MAX_CHUNK_SIZE,
    validate_chunk_size,
    validate_retries,
    validate_server_url,
    validate_timeout,
    validate_workers,
)

# =============================================================================
# URL Validation Tests
# =============================================================================


class TestValidateServerUrl:
    """Tests for validate_server_url."""

    def test_valid_http_url(self):
        assert validate_server_url("http://localhost:8080") == "http://localhost:8080"

    def test_strips_trailing_slash_and_space(self):
        assert validate_server_url("  https://store.example.org/ ") == "https://store.example.org"

    @pytest.mark.parametrize("url", ["", "   ", "store.example.org", "ftp://x.org", "http://"])
    def test_invalid(self, url):
        with pytest.raises(InvalidURLError):
            validate_server_url(url)


# =============================================================================
# Transfer Settings
# =============================================================================


class TestTransferSettings:
    """Tests for chunk size, worker, timeout and retry validators."""

    def test_chunk_size_bounds(self):
        assert validate_chunk_size(1) == 1
        assert validate_chunk_size(MAX_CHUNK_SIZE) == MAX_CHUNK_SIZE
        for bad in (0, -5, MAX_CHUNK_SIZE + 1):
            with pytest.raises(ValidationError):
                validate_chunk_size(bad)

    def test_chunk_size_type(self):
        with pytest.raises(ValidationError):
            validate_chunk_size(True)
        with pytest.raises(ValidationError):
            validate_chunk_size(1.5)  # type: ignore[arg-type]

    def test_workers(self):
        assert validate_workers(4) == 4
        with pytest.raises(ValidationError):
            validate_workers(0)
        with pytest.raises(ValidationError):
            validate_workers(65)

    def test_timeout(self):
        assert validate_timeout(30) == 30
        with pytest.raises(ValidationError):
            validate_timeout(0)

    def test_retries(self):
        assert validate_retries(0) == 0
        with pytest.raises(ValidationError):
            validate_retries(-1)
