"""CBOR encoding of :class:`~textframe.index.PositionIndex` side-car files.

The index is stored as a single CBOR map::

    {
        "version": 1,
        "digest": <32 bytes, sha256 of the source>,
        "char_count": int,
        "byte_count": int,
        "checkpoint_interval": int,
        "checkpoints": {"chars": [int], "bytes": [int], "uniform": [bool]},
        "lines": {"chars": [int], "bytes": [int]} | null,
    }

CBOR integers are variable width, so small files get small indices without
any explicit size classes.
"""

from __future__ import annotations

import logging
import os
from array import array
from pathlib import Path
from typing import Any

import cbor2

from .digest import DIGEST_SIZE
from .errors import IndexDecodeError
from .index import CheckpointIndex, LineIndex, PositionIndex

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def encode(index: PositionIndex) -> bytes:
    """Serialize a position index.

    Parameters
    ----------
    index : PositionIndex
        Index to serialize.

    Returns
    -------
    bytes
        Encoded side-car contents.
    """
    cp_chars, cp_bytes, cp_uniform = index.checkpoints.arrays
    lines = None
    if index.lines is not None:
        line_chars, line_bytes = index.lines.arrays
        lines = {"chars": line_chars.tolist(), "bytes": line_bytes.tolist()}

    return cbor2.dumps(
        {
            "version": FORMAT_VERSION,
            "digest": index.digest,
            "char_count": index.char_count,
            "byte_count": index.byte_count,
            "checkpoint_interval": index.checkpoint_interval,
            "checkpoints": {
                "chars": cp_chars.tolist(),
                "bytes": cp_bytes.tolist(),
                "uniform": [bool(u) for u in cp_uniform],
            },
            "lines": lines,
        }
    )


def decode(data: bytes) -> PositionIndex:
    """Deserialize a position index.

    Raises
    ------
    IndexDecodeError
        If *data* is not a well-formed index of a supported version.
    """
    try:
        raw = cbor2.loads(data)
    except cbor2.CBORDecodeError as e:
        raise IndexDecodeError(f"index is not valid CBOR: {e}") from e

    if not isinstance(raw, dict):
        raise IndexDecodeError(f"index must be a CBOR map, got {type(raw).__name__}")
    try:
        return _from_raw(raw)
    except IndexDecodeError:
        raise
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise IndexDecodeError(f"index is malformed: {e!r}") from e


def _from_raw(raw: dict[str, Any]) -> PositionIndex:
    version = raw["version"]
    if version != FORMAT_VERSION:
        raise IndexDecodeError(f"unsupported index format version {version}")

    digest = raw["digest"]
    if not isinstance(digest, bytes) or len(digest) != DIGEST_SIZE:
        raise IndexDecodeError("index digest is missing or has the wrong size")
    char_count = int(raw["char_count"])
    byte_count = int(raw["byte_count"])
    interval = int(raw["checkpoint_interval"])

    cp = raw["checkpoints"]
    cp_chars = array("Q", cp["chars"])
    cp_bytes = array("Q", cp["bytes"])
    cp_uniform = array("B", (1 if u else 0 for u in cp["uniform"]))
    if not (len(cp_chars) == len(cp_bytes) == len(cp_uniform)) or not cp_chars or interval < 1:
        raise IndexDecodeError("checkpoint arrays are empty or of unequal length")
    if cp_chars[0] != 0 or cp_bytes[0] != 0 or cp_chars[-1] > char_count or cp_bytes[-1] > byte_count:
        raise IndexDecodeError("checkpoints are inconsistent with totals")

    lines = None
    if raw["lines"] is not None:
        line_chars = array("Q", raw["lines"]["chars"])
        line_bytes = array("Q", raw["lines"]["bytes"])
        if len(line_chars) != len(line_bytes) or not line_chars or line_chars[0] != 0:
            raise IndexDecodeError("line index is malformed")
        lines = LineIndex(line_chars, line_bytes, char_count, byte_count)

    return PositionIndex(
        checkpoints=CheckpointIndex(cp_chars, cp_bytes, cp_uniform, char_count, byte_count, interval),
        lines=lines,
        char_count=char_count,
        byte_count=byte_count,
        digest=digest,
    )


def write_index(index: PositionIndex, path: str | Path) -> None:
    """Encode *index* and write it to *path*, replacing any existing file."""
    path = Path(path)
    tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
    tmp.write_bytes(encode(index))
    os.replace(tmp, path)
    logger.debug("Wrote position index to %s", path)


def read_index(path: str | Path) -> PositionIndex:
    """Read and decode the index stored at *path*.

    Raises
    ------
    IndexDecodeError
        If the file content is not a valid index.
    OSError
        If the file cannot be read.
    """
    return decode(Path(path).read_bytes())
