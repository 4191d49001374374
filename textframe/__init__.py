"""textframe - random access to large plain-text files by Unicode offset.

Query a UTF-8 text file by character offset (or line number) without loading
it all into memory. The file is scanned once to build a compact position
index, which can be cached in a side-car file validated by SHA-256 digest.
Requested excerpts are loaded on demand into immutable frames and served
from memory on later requests.

Example:
    >>> from textframe import TextFile, TextFileMode
    >>>
    >>> tf = TextFile("corpus.txt", index_path="corpus.txt.tfidx")
    >>> len(tf)                          # characters
    914
    >>> tf.get_or_load(0, 0)             # whole text
    >>> tf.get_or_load(-10, 0)           # last ten characters
    >>> tf.get_or_load_lines(1, 2)       # second line, terminator included
    'Article 1\\n'
"""

from .codec import decode, encode, read_index, write_index
from .config import (
    ConfigError,
    IndexConfig,
    LoggingConfig,
    TextFrameConfig,
    apply_env_overrides,
    index_path_for,
    load_config,
)
from .errors import (
    EmptyTextError,
    FrameNotLoadedError,
    IndexDecodeError,
    InvalidEncodingError,
    InvertedRangeError,
    LineIndexDisabledError,
    LineOutOfBoundsError,
    MisalignedByteOffsetError,
    OffsetOutOfBoundsError,
    StaleCacheError,
    TextFrameError,
)
from .frames import Frame, FrameStore
from .index import (
    DEFAULT_CHECKPOINT_INTERVAL,
    Checkpoint,
    CheckpointIndex,
    LineEntry,
    LineIndex,
    PositionIndex,
    TextFileMode,
    build_index,
    scan_stream,
)
from .resolver import resolve_offset, resolve_range
from .textfile import TextFile, TextFileReader

__version__ = "0.1.0"

__all__ = [
    "TextFile",
    "TextFileReader",
    "TextFileMode",
    "DEFAULT_CHECKPOINT_INTERVAL",
    "Checkpoint",
    "CheckpointIndex",
    "LineEntry",
    "LineIndex",
    "PositionIndex",
    "build_index",
    "scan_stream",
    "Frame",
    "FrameStore",
    "resolve_offset",
    "resolve_range",
    "encode",
    "decode",
    "read_index",
    "write_index",
    "TextFrameConfig",
    "IndexConfig",
    "LoggingConfig",
    "ConfigError",
    "apply_env_overrides",
    "index_path_for",
    "load_config",
    "TextFrameError",
    "EmptyTextError",
    "InvalidEncodingError",
    "OffsetOutOfBoundsError",
    "LineOutOfBoundsError",
    "InvertedRangeError",
    "LineIndexDisabledError",
    "MisalignedByteOffsetError",
    "FrameNotLoadedError",
    "StaleCacheError",
    "IndexDecodeError",
]
