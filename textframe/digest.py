"""SHA-256 content digests for source files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Protocol

DIGEST_SIZE = 32

_READ_SIZE = 1 << 20


class Hasher(Protocol):
    """The part of the hashlib hash interface used by the scanner."""

    def update(self, data: bytes, /) -> None: ...

    def digest(self) -> bytes: ...


def new_digest() -> Hasher:
    """Return a fresh running SHA-256 hasher."""
    return hashlib.sha256()


def file_digest(path: str | Path) -> bytes:
    """Compute the SHA-256 digest of a file by streaming it.

    Parameters
    ----------
    path : str | Path
        File to hash.

    Returns
    -------
    bytes
        The 32-byte digest.
    """
    hasher = new_digest()
    with open(path, "rb") as f:
        while chunk := f.read(_READ_SIZE):
            hasher.update(chunk)
    return hasher.digest()


def hexdigest(digest: bytes) -> str:
    """Render a digest as lowercase hex."""
    return digest.hex()
