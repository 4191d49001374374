"""Position indices mapping characters and lines to UTF-8 byte offsets.

A text file is scanned exactly once. During that scan we record a
:class:`Checkpoint` every ``checkpoint_interval`` characters and, optionally,
the start of every line. Converting a character offset to a byte offset then
costs a binary search plus decoding at most one checkpoint span, no matter
how large the file is.

Line terminator policy: lines end with ``"\\n"``, which is *included* in the
line it terminates. A terminator at the very end of the file does not open
an extra empty line, so ``"a\\nb\\nc\\n"`` has three lines.
"""

from __future__ import annotations

import logging
import os
from array import array
from bisect import bisect_right
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from .digest import hexdigest, new_digest
from .errors import (
    EmptyTextError,
    InvalidEncodingError,
    LineOutOfBoundsError,
    MisalignedByteOffsetError,
    OffsetOutOfBoundsError,
)
from .resolver import resolve_offset, resolve_range

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_INTERVAL = 4096

_READ_SIZE = 1 << 20

ByteReader = Callable[[int, int], bytes]
"""Callable returning the raw bytes of ``[begin, end)`` of the source file."""


class TextFileMode(Enum):
    """Whether a line index is built alongside the checkpoint index."""

    #: Do not compute a line index (cheapest); line-based queries fail.
    NO_LINE_INDEX = "no_line_index"

    #: Compute a line index; enables line-based queries.
    WITH_LINE_INDEX = "with_line_index"


@dataclass(frozen=True)
class Checkpoint:
    """A sampled ``(character offset, byte offset)`` pair.

    ``uniform`` is set when every character up to the next checkpoint is
    encoded as a single byte.
    """

    char_offset: int
    byte_offset: int
    uniform: bool = False


@dataclass(frozen=True)
class LineEntry:
    """Boundaries of one line; ends are exclusive and include the terminator."""

    line_number: int
    start_char: int
    end_char: int
    start_byte: int
    end_byte: int


class CheckpointIndex:
    """Sparse, sorted character-offset → byte-offset index."""

    def __init__(
        self,
        char_offsets: array,
        byte_offsets: array,
        uniform: array,
        total_chars: int,
        total_bytes: int,
        interval: int = DEFAULT_CHECKPOINT_INTERVAL,
    ) -> None:
        self._chars = char_offsets
        self._bytes = byte_offsets
        self._uniform = uniform
        self.total_chars = total_chars
        self.total_bytes = total_bytes
        self.interval = interval

    def __len__(self) -> int:
        return len(self._chars)

    def __getitem__(self, index: int) -> Checkpoint:
        return Checkpoint(self._chars[index], self._bytes[index], bool(self._uniform[index]))

    def __iter__(self) -> Iterator[Checkpoint]:
        for i in range(len(self._chars)):
            yield self[i]

    @property
    def arrays(self) -> tuple[array, array, array]:
        """The raw ``(char_offsets, byte_offsets, uniform)`` arrays."""
        return self._chars, self._bytes, self._uniform

    def resolve(self, char_offset: int, read: ByteReader) -> int:
        """Convert an absolute character offset to a byte offset.

        Parameters
        ----------
        char_offset : int
            Character offset in ``[0, total_chars]``.
        read : ByteReader
            Used to fetch the checkpoint span that has to be decoded. It is
            not called for offsets that land on a checkpoint or inside a
            single-byte span.

        Returns
        -------
        int
            The byte offset at which that character starts.

        Raises
        ------
        OffsetOutOfBoundsError
            If *char_offset* is negative or beyond the end of the text.
        """
        if char_offset < 0 or char_offset > self.total_chars:
            raise OffsetOutOfBoundsError(char_offset, self.total_chars)
        if char_offset == self.total_chars:
            return self.total_bytes

        i = bisect_right(self._chars, char_offset) - 1
        base_char = self._chars[i]
        base_byte = self._bytes[i]
        delta = char_offset - base_char
        if delta == 0:
            return base_byte
        if self._uniform[i]:
            return base_byte + delta

        span_end = self._bytes[i + 1] if i + 1 < len(self._bytes) else self.total_bytes
        text = read(base_byte, span_end).decode("utf-8")
        return base_byte + len(text[:delta].encode("utf-8"))

    def resolve_byte(self, byte_offset: int, read: ByteReader) -> int:
        """Convert an absolute byte offset to a character offset.

        Raises
        ------
        OffsetOutOfBoundsError
            If *byte_offset* is negative or beyond the end of the file.
        MisalignedByteOffsetError
            If *byte_offset* falls inside a multi-byte character.
        """
        if byte_offset < 0 or byte_offset > self.total_bytes:
            raise OffsetOutOfBoundsError(byte_offset, self.total_bytes)
        if byte_offset == self.total_bytes:
            return self.total_chars

        i = bisect_right(self._bytes, byte_offset) - 1
        base_char = self._chars[i]
        base_byte = self._bytes[i]
        delta = byte_offset - base_byte
        if delta == 0:
            return base_char
        if self._uniform[i]:
            return base_char + delta

        try:
            return base_char + len(read(base_byte, byte_offset).decode("utf-8"))
        except UnicodeDecodeError:
            raise MisalignedByteOffsetError(byte_offset) from None


class LineIndex:
    """Start offsets of every line, in characters and in bytes."""

    def __init__(
        self,
        start_chars: array,
        start_bytes: array,
        total_chars: int,
        total_bytes: int,
    ) -> None:
        self._chars = start_chars
        self._bytes = start_bytes
        self.total_chars = total_chars
        self.total_bytes = total_bytes

    def __len__(self) -> int:
        return len(self._chars)

    def __iter__(self) -> Iterator[LineEntry]:
        for i in range(len(self._chars)):
            yield self.entry(i)

    @property
    def arrays(self) -> tuple[array, array]:
        """The raw ``(start_chars, start_bytes)`` arrays."""
        return self._chars, self._bytes

    def entry(self, line: int) -> LineEntry:
        """Return the :class:`LineEntry` of an absolute line number."""
        count = len(self._chars)
        if line < 0 or line >= count:
            raise LineOutOfBoundsError(line, count)
        if line + 1 < count:
            end_char, end_byte = self._chars[line + 1], self._bytes[line + 1]
        else:
            end_char, end_byte = self.total_chars, self.total_bytes
        return LineEntry(line, self._chars[line], end_char, self._bytes[line], end_byte)

    def line_to_chars(self, line: int) -> int:
        """Character offset where *line* begins (negative is end-relative)."""
        absolute = resolve_offset(line, len(self._chars), error=LineOutOfBoundsError)
        if absolute == len(self._chars):
            return self.total_chars
        return self._chars[absolute]

    def line_to_bytes(self, line: int) -> int:
        """Byte offset where *line* begins (negative is end-relative)."""
        absolute = resolve_offset(line, len(self._chars), error=LineOutOfBoundsError)
        if absolute == len(self._chars):
            return self.total_bytes
        return self._bytes[absolute]

    def resolve_line_range(self, begin: int, end: int) -> tuple[int, int]:
        """Convert a line range into an absolute character range."""
        first, last = resolve_range(begin, end, len(self._chars), error=LineOutOfBoundsError)
        return self._boundary(first, self._chars, self.total_chars), self._boundary(
            last, self._chars, self.total_chars
        )

    def byte_range(self, begin: int, end: int) -> tuple[int, int]:
        """Convert a line range into an absolute byte range."""
        first, last = resolve_range(begin, end, len(self._chars), error=LineOutOfBoundsError)
        return self._boundary(first, self._bytes, self.total_bytes), self._boundary(
            last, self._bytes, self.total_bytes
        )

    @staticmethod
    def _boundary(line: int, starts: array, total: int) -> int:
        return starts[line] if line < len(starts) else total


@dataclass
class PositionIndex:
    """Everything persisted about one source file."""

    checkpoints: CheckpointIndex
    lines: LineIndex | None
    char_count: int
    byte_count: int
    digest: bytes

    @property
    def mode(self) -> TextFileMode:
        if self.lines is None:
            return TextFileMode.NO_LINE_INDEX
        return TextFileMode.WITH_LINE_INDEX

    @property
    def checkpoint_interval(self) -> int:
        return self.checkpoints.interval


# =====================================================================
# Building
# =====================================================================


class _Scanner:
    """Accumulates checkpoints and line starts from decoded text pieces."""

    def __init__(self, interval: int, with_lines: bool) -> None:
        self.interval = interval
        self.with_lines = with_lines
        self.char_count = 0
        self.byte_count = 0
        self.cp_chars = array("Q", [0])
        self.cp_bytes = array("Q", [0])
        self.cp_uniform = array("B")
        self.line_chars = array("Q", [0])
        self.line_bytes = array("Q", [0])
        self._next_checkpoint = interval
        self._span_uniform = True

    def feed(self, text: str, nbytes: int) -> None:
        base_char = self.char_count
        base_byte = self.byte_count
        end_char = base_char + len(text)
        single_byte = nbytes == len(text)

        checkpoints = range(self._next_checkpoint, end_char, self.interval)
        if checkpoints:
            self._next_checkpoint = checkpoints[-1] + self.interval

        line_starts: list[int] = []
        if self.with_lines:
            j = text.find("\n")
            while j != -1:
                line_starts.append(base_char + j + 1)
                j = text.find("\n", j + 1)

        wanted = sorted(set(checkpoints).union(line_starts))
        if single_byte:
            offsets = {c: base_byte + (c - base_char) for c in wanted}
        else:
            offsets = self._byte_offsets(text, base_char, base_byte, wanted)

        prev = base_char
        for c in checkpoints:
            if self._span_uniform and not single_byte:
                self._span_uniform = text[prev - base_char : c - base_char].isascii()
            self.cp_uniform.append(int(self._span_uniform))
            self._span_uniform = True
            self.cp_chars.append(c)
            self.cp_bytes.append(offsets[c])
            prev = c
        if self._span_uniform and not single_byte:
            self._span_uniform = text[prev - base_char :].isascii()

        for c in line_starts:
            self.line_chars.append(c)
            self.line_bytes.append(offsets[c])

        self.char_count = end_char
        self.byte_count = base_byte + nbytes

    @staticmethod
    def _byte_offsets(
        text: str, base_char: int, base_byte: int, positions: list[int]
    ) -> dict[int, int]:
        offsets: dict[int, int] = {}
        char_pos = base_char
        byte_pos = base_byte
        for c in positions:
            byte_pos += len(text[char_pos - base_char : c - base_char].encode("utf-8"))
            char_pos = c
            offsets[c] = byte_pos
        return offsets

    def finish(self, digest: bytes) -> PositionIndex:
        self.cp_uniform.append(int(self._span_uniform))
        checkpoints = CheckpointIndex(
            self.cp_chars,
            self.cp_bytes,
            self.cp_uniform,
            self.char_count,
            self.byte_count,
            self.interval,
        )
        lines = None
        if self.with_lines:
            if len(self.line_chars) > 1 and self.line_chars[-1] == self.char_count:
                self.line_chars.pop()
                self.line_bytes.pop()
            lines = LineIndex(self.line_chars, self.line_bytes, self.char_count, self.byte_count)
        return PositionIndex(
            checkpoints=checkpoints,
            lines=lines,
            char_count=self.char_count,
            byte_count=self.byte_count,
            digest=digest,
        )


def scan_stream(
    stream: BinaryIO,
    mode: TextFileMode = TextFileMode.WITH_LINE_INDEX,
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
    read_size: int = _READ_SIZE,
) -> PositionIndex:
    """Build a :class:`PositionIndex` from a binary stream in a single pass.

    Parameters
    ----------
    stream : BinaryIO
        Readable binary stream positioned at the start of the text.
    mode : TextFileMode
        Whether to build the line index too.
    checkpoint_interval : int
        Number of characters between checkpoints.
    read_size : int
        Number of bytes read per chunk.

    Returns
    -------
    PositionIndex
        The finished index, including the SHA-256 digest of the stream.

    Raises
    ------
    EmptyTextError
        If the stream contains no bytes.
    InvalidEncodingError
        At the first malformed UTF-8 sequence.
    """
    if checkpoint_interval < 1:
        raise ValueError(f"checkpoint_interval must be positive, got {checkpoint_interval}")
    scanner = _Scanner(checkpoint_interval, mode is TextFileMode.WITH_LINE_INDEX)
    hasher = new_digest()
    carry = b""
    consumed = 0  # bytes decoded so far, i.e. the offset of ``carry``
    while True:
        chunk = stream.read(read_size)
        final = not chunk
        if chunk:
            hasher.update(chunk)
        data = carry + chunk if carry else chunk
        if not data:
            break
        try:
            text = data.decode("utf-8")
            usable = len(data)
        except UnicodeDecodeError as e:
            truncated = e.end == len(data) and e.reason == "unexpected end of data"
            if final or not truncated:
                raise InvalidEncodingError(consumed + e.start, e.reason) from None
            usable = e.start
            text = data[:usable].decode("utf-8")
        scanner.feed(text, usable)
        consumed += usable
        carry = data[usable:]
        if final:
            break

    if scanner.byte_count == 0:
        raise EmptyTextError()
    index = scanner.finish(hasher.digest())
    logger.debug(
        "Scanned %d chars / %d bytes: %d checkpoints, %s lines, sha256=%s",
        index.char_count,
        index.byte_count,
        len(index.checkpoints),
        len(index.lines) if index.lines is not None else "no",
        hexdigest(index.digest),
    )
    return index


def build_index(
    path: str | Path,
    mode: TextFileMode = TextFileMode.WITH_LINE_INDEX,
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL,
) -> PositionIndex:
    """Scan a text file on disk and build its :class:`PositionIndex`.

    Raises
    ------
    EmptyTextError
        If the file has zero bytes; the file is not scanned in that case.
    InvalidEncodingError
        If the file is not valid UTF-8.
    OSError
        If the file cannot be read.
    """
    with open(path, "rb") as f:
        if os.fstat(f.fileno()).st_size == 0:
            raise EmptyTextError(path)
        logger.debug("Building position index for %s", path)
        return scan_stream(f, mode, checkpoint_interval)
