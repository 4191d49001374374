"""Unit tests for textframe.digest."""

from __future__ import annotations

import hashlib
from pathlib import Path

from textframe.digest import DIGEST_SIZE, file_digest, hexdigest, new_digest

from .conftest import EXAMPLE_ASCII_SHA256, MIXED_TEXT, write_text


class TestFileDigest:
    def test_matches_reference(self, ascii_file: Path) -> None:
        assert hexdigest(file_digest(ascii_file)) == EXAMPLE_ASCII_SHA256

    def test_size(self, ascii_file: Path) -> None:
        assert len(file_digest(ascii_file)) == DIGEST_SIZE

    def test_large_file_streamed(self, tmp_path: Path) -> None:
        text = MIXED_TEXT * 300  # > 1 MiB, several read chunks
        path = write_text(tmp_path, text)
        assert file_digest(path) == hashlib.sha256(text.encode("utf-8")).digest()


class TestNewDigest:
    def test_incremental_equals_file_digest(self, ascii_file: Path) -> None:
        hasher = new_digest()
        data = ascii_file.read_bytes()
        hasher.update(data[:100])
        hasher.update(data[100:])
        assert hasher.digest() == file_digest(ascii_file)


class TestHexdigest:
    def test_lowercase_hex(self) -> None:
        assert hexdigest(bytes([0, 171, 255])) == "00abff"

    def test_running_hasher_round_trip(self) -> None:
        hasher = new_digest()
        hasher.update(b"abc")
        assert hexdigest(hasher.digest()) == hashlib.sha256(b"abc").hexdigest()
