"""Random access to large UTF-8 text files by character or line offset.

:class:`TextFile` associates a file on disk with a position index and with
immutable excerpts of it (frames) loaded into memory on demand::

    >>> from textframe import TextFile
    >>> tf = TextFile("corpus.txt", index_path="corpus.txt.tfidx")
    >>> tf.get_or_load(1, 10)        # characters 1..9
    'Article 1'
    >>> tf.get_or_load(-7, 0)        # last seven characters
    'forms.\\n'
    >>> tf.get(1, 10)                # already loaded, no I/O
    'Article 1'

Offsets follow the rules of :mod:`textframe.resolver`: negative values count
from the end and an *end* of ``0`` means the end of the text.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from .codec import read_index, write_index
from .config import TextFrameConfig, index_path_for
from .digest import file_digest, hexdigest
from .errors import (
    EmptyTextError,
    FrameNotLoadedError,
    IndexDecodeError,
    InvertedRangeError,
    LineIndexDisabledError,
    OffsetOutOfBoundsError,
    StaleCacheError,
)
from .frames import FrameStore
from .index import (
    DEFAULT_CHECKPOINT_INTERVAL,
    LineIndex,
    PositionIndex,
    TextFileMode,
    build_index,
)
from .resolver import resolve_range

logger = logging.getLogger(__name__)


class TextFile:
    """A text file on disk plus the excerpts of it loaded so far.

    The file is scanned once on construction (or its index is restored from
    a side-car cache whose digest matches the file). The file must not be
    modified while the object is alive.

    Methods named ``get*`` never load anything: they only serve text from
    frames already in memory and raise :class:`FrameNotLoadedError`
    otherwise. Methods named ``get_or_load*`` and :meth:`load` read from
    disk when needed and are serialized by an internal lock.

    Parameters
    ----------
    path : str | Path
        The text file.
    index_path : str | Path | None
        Side-car file caching the position index. Used when present and
        valid, (re)written after every rebuild.
    mode : TextFileMode
        Whether to build a line index.
    checkpoint_interval : int
        Characters between checkpoints when the index is built.

    Raises
    ------
    EmptyTextError
        If the file is empty.
    InvalidEncodingError
        If the file is not valid UTF-8.
    OSError
        If the file cannot be read or the index cannot be written.
    """

    def __init__(
        self,
        path: str | Path,
        index_path: str | Path | None = None,
        mode: TextFileMode = TextFileMode.WITH_LINE_INDEX,
        checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
    ) -> None:
        self._path = Path(path)
        self._index_path = Path(index_path) if index_path is not None else None
        self._mode = mode
        self._lock = threading.RLock()
        self._metadata = os.stat(self._path)
        if self._metadata.st_size == 0:
            raise EmptyTextError(self._path)
        self._index = self._open_index(checkpoint_interval)
        self._frames = FrameStore(self._read_bytes)

    @classmethod
    def from_config(cls, path: str | Path, config: TextFrameConfig) -> TextFile:
        """Open *path* with the index settings of a :class:`TextFrameConfig`."""
        index_path = None
        if config.index.cache:
            index_path = index_path_for(path, config)
            index_path.parent.mkdir(parents=True, exist_ok=True)
        mode = TextFileMode.WITH_LINE_INDEX if config.index.line_index else TextFileMode.NO_LINE_INDEX
        return cls(path, index_path, mode, config.index.checkpoint_interval)

    # ------------------------------------------------------------------
    # Index construction
    # ------------------------------------------------------------------

    def _open_index(self, checkpoint_interval: int) -> PositionIndex:
        index = None
        if self._index_path is not None and self._index_path.exists():
            index = self._load_cached_index(self._index_path)
        if index is None:
            index = build_index(self._path, self._mode, checkpoint_interval)
            if self._index_path is not None:
                write_index(index, self._index_path)
        return index

    def _load_cached_index(self, index_path: Path) -> PositionIndex | None:
        try:
            index = read_index(index_path)
        except (IndexDecodeError, OSError) as e:
            logger.warning("Discarding cached index %s: %s", index_path, e)
            return None
        try:
            self._validate_cached_index(index)
        except StaleCacheError as e:
            logger.warning("Discarding cached index %s: %s", index_path, e)
            return None
        if self._mode is TextFileMode.NO_LINE_INDEX:
            index.lines = None
        logger.debug("Loaded cached index %s for %s", index_path, self._path)
        return index

    def _validate_cached_index(self, index: PositionIndex) -> None:
        if index.byte_count != self._metadata.st_size:
            raise StaleCacheError(
                f"size mismatch ({index.byte_count} cached, {self._metadata.st_size} on disk)"
            )
        digest = file_digest(self._path)
        if digest != index.digest:
            raise StaleCacheError(
                f"digest mismatch ({hexdigest(index.digest)} cached, {hexdigest(digest)} on disk)"
            )
        if self._mode is TextFileMode.WITH_LINE_INDEX and index.lines is None:
            raise StaleCacheError("cached index has no line index")

    def save_index(self, path: str | Path | None = None) -> Path:
        """Write the position index to *path* (default: the side-car path).

        Returns
        -------
        Path
            The path written.
        """
        target = Path(path) if path is not None else self._index_path
        if target is None:
            raise ValueError("no index path given and none configured")
        with self._lock:
            write_index(self._index, target)
        return target

    # ------------------------------------------------------------------
    # Disk access
    # ------------------------------------------------------------------

    def _read_bytes(self, begin: int, end: int) -> bytes:
        with open(self._path, "rb") as f:
            f.seek(begin)
            return f.read(end - begin)

    def _read_span(self, begin: int, end: int) -> bytes:
        frame = self._frames.find_covering(begin, end)
        if frame is not None:
            return frame.data[begin - frame.begin_byte : end - frame.begin_byte]
        return self._read_bytes(begin, end)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        """The text file on disk."""
        return self._path

    @property
    def index_path(self) -> Path | None:
        return self._index_path

    @property
    def mode(self) -> TextFileMode:
        return self._index.mode

    @property
    def index(self) -> PositionIndex:
        return self._index

    def __len__(self) -> int:
        return self._index.char_count

    @property
    def char_count(self) -> int:
        """Length of the text in characters."""
        return self._index.char_count

    @property
    def byte_count(self) -> int:
        """Length of the text in UTF-8 bytes."""
        return self._index.byte_count

    def len_utf8(self) -> int:
        return self._index.byte_count

    @property
    def line_count(self) -> int:
        """Number of lines; a trailing newline does not start a new line."""
        return len(self._lines())

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def frames(self) -> FrameStore:
        return self._frames

    @property
    def mtime(self) -> int:
        """Modification time of the file when it was opened (unix seconds)."""
        return int(self._metadata.st_mtime)

    @property
    def checksum(self) -> bytes:
        """SHA-256 digest of the file contents."""
        return self._index.digest

    @property
    def checksum_digest(self) -> str:
        """SHA-256 digest as a hex string."""
        return hexdigest(self._index.digest)

    def __repr__(self) -> str:
        return (
            f"TextFile({str(self._path)!r}, chars={self.char_count:,}, "
            f"bytes={self.byte_count:,}, frames={len(self._frames)})"
        )

    # ------------------------------------------------------------------
    # Offset conversion
    # ------------------------------------------------------------------

    def absolute_range(self, begin: int, end: int) -> tuple[int, int]:
        """Resolve a (possibly relative) character range to absolute offsets."""
        return resolve_range(begin, end, self._index.char_count)

    def chars_to_bytes(self, char_offset: int) -> int:
        """Convert an absolute character offset to a byte offset."""
        return self._index.checkpoints.resolve(char_offset, self._read_span)

    def bytes_to_chars(self, byte_offset: int) -> int:
        """Convert an absolute byte offset to a character offset.

        Raises :class:`MisalignedByteOffsetError` when *byte_offset* is not on
        a character boundary.
        """
        return self._index.checkpoints.resolve_byte(byte_offset, self._read_span)

    def _lines(self) -> LineIndex:
        if self._index.lines is None:
            raise LineIndexDisabledError()
        return self._index.lines

    def line_to_chars(self, line: int) -> int:
        """Character offset where *line* (0-indexed, negative allowed) begins."""
        return self._lines().line_to_chars(line)

    def line_to_bytes(self, line: int) -> int:
        """Byte offset where *line* (0-indexed, negative allowed) begins."""
        return self._lines().line_to_bytes(line)

    def line_range_to_char_range(self, begin: int, end: int) -> tuple[int, int]:
        return self._lines().resolve_line_range(begin, end)

    def line_range_to_byte_range(self, begin: int, end: int) -> tuple[int, int]:
        return self._lines().byte_range(begin, end)

    def _check_byte_range(self, begin: int, end: int) -> None:
        total = self._index.byte_count
        for offset in (begin, end):
            if offset < 0 or offset > total:
                raise OffsetOutOfBoundsError(offset, total)
        if begin > end:
            raise InvertedRangeError(begin, end)

    # ------------------------------------------------------------------
    # Non-loading accessors
    # ------------------------------------------------------------------

    def get(self, begin: int, end: int) -> str:
        """Return text by character range from frames already in memory.

        Parameters
        ----------
        begin : int
            Begin offset in characters; negative counts from the end.
        end : int
            End offset in characters (exclusive); ``0`` or negative counts
            from the end.

        Raises
        ------
        FrameNotLoadedError
            If the range has not been loaded; use :meth:`get_or_load`.
        """
        abs_begin, abs_end = self.absolute_range(begin, end)
        return self._frames.get_chars(abs_begin, abs_end)

    def get_lines(self, begin: int, end: int) -> str:
        """Return text by line range (0-indexed) from frames already in memory.

        Line terminators are included in the returned text.
        """
        abs_begin, abs_end = self._lines().resolve_line_range(begin, end)
        return self._frames.get_chars(abs_begin, abs_end)

    def get_bytes(self, begin: int, end: int) -> str:
        """Return text by absolute byte range from frames already in memory.

        Both offsets must fall on character boundaries. Alignment is checked
        before frame coverage, so a misaligned range fails with
        :class:`MisalignedByteOffsetError` whether or not it is loaded.
        """
        self._check_byte_range(begin, end)
        frame = self._frames.find_covering(begin, end)
        if frame is None:
            self.bytes_to_chars(begin)
            self.bytes_to_chars(end)
            raise FrameNotLoadedError(begin, end)
        return frame.byte_slice(begin, end)

    # ------------------------------------------------------------------
    # Loading accessors
    # ------------------------------------------------------------------

    def get_or_load(self, begin: int, end: int) -> str:
        """Return text by character range, loading it from disk if needed.

        Parameters
        ----------
        begin : int
            Begin offset in characters; negative counts from the end.
        end : int
            End offset in characters (exclusive); ``0`` or negative counts
            from the end.
        """
        abs_begin, abs_end = self.absolute_range(begin, end)
        with self._lock:
            frame = self._frames.find_covering_chars(abs_begin, abs_end)
            if frame is not None:
                return frame.char_slice(abs_begin, abs_end)
            return self._load_chars(abs_begin, abs_end)

    def load(self, begin: int, end: int) -> None:
        """Load a character range into a new frame."""
        abs_begin, abs_end = self.absolute_range(begin, end)
        with self._lock:
            self._load_chars(abs_begin, abs_end)

    def _load_chars(self, begin: int, end: int) -> str:
        begin_byte = self.chars_to_bytes(begin)
        end_byte = self.chars_to_bytes(end)
        return self._frames.load(begin_byte, end_byte, begin)

    def get_or_load_lines(self, begin: int, end: int) -> str:
        """Return text by line range (0-indexed), loading it if needed.

        Line terminators are included in the returned text.
        """
        lines = self._lines()
        abs_begin, abs_end = lines.resolve_line_range(begin, end)
        with self._lock:
            frame = self._frames.find_covering_chars(abs_begin, abs_end)
            if frame is not None:
                return frame.char_slice(abs_begin, abs_end)
            begin_byte, end_byte = lines.byte_range(begin, end)
            return self._frames.load(begin_byte, end_byte, abs_begin)

    def get_or_load_bytes(self, begin: int, end: int) -> str:
        """Return text by absolute byte range, loading it if needed.

        Raises
        ------
        MisalignedByteOffsetError
            If an offset does not fall on a character boundary.
        """
        self._check_byte_range(begin, end)
        with self._lock:
            frame = self._frames.find_covering(begin, end)
            if frame is not None:
                return frame.byte_slice(begin, end)
            begin_char = self.bytes_to_chars(begin)
            self.bytes_to_chars(end)
            return self._frames.load(begin, end, begin_char)

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    def reader(self) -> TextFileReader:
        """Return a view that can only serve already loaded text."""
        return TextFileReader(self)


class TextFileReader:
    """Read-only view on a :class:`TextFile`.

    Exposes the non-loading accessors and metadata only, so holders of a
    reader can never create frames. The only disk access is the alignment
    check of a byte range that is not loaded. Several readers
    may be used from different threads while no thread is loading.
    """

    __slots__ = ("_textfile",)

    def __init__(self, textfile: TextFile) -> None:
        self._textfile = textfile

    def get(self, begin: int, end: int) -> str:
        return self._textfile.get(begin, end)

    def get_lines(self, begin: int, end: int) -> str:
        return self._textfile.get_lines(begin, end)

    def get_bytes(self, begin: int, end: int) -> str:
        return self._textfile.get_bytes(begin, end)

    def __len__(self) -> int:
        return len(self._textfile)

    @property
    def path(self) -> Path:
        return self._textfile.path

    @property
    def char_count(self) -> int:
        return self._textfile.char_count

    @property
    def byte_count(self) -> int:
        return self._textfile.byte_count

    @property
    def line_count(self) -> int:
        return self._textfile.line_count

    @property
    def checksum_digest(self) -> str:
        return self._textfile.checksum_digest

    def __repr__(self) -> str:
        return f"TextFileReader({self._textfile!r})"
