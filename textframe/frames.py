"""Append-only store of loaded text excerpts ("frames").

A :class:`Frame` holds the raw bytes of a contiguous, character-aligned
range of the source file together with the decoded text. Frames are never
modified, merged or dropped once stored, and may overlap. Text handed out
from a frame is an immutable ``str`` and therefore stays valid however many
frames are loaded afterwards.

Frames are looked up through two sorted tables, one keyed by the first
byte and one keyed by the first character of each frame.
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .errors import (
    FrameNotLoadedError,
    InvalidEncodingError,
    InvertedRangeError,
    MisalignedByteOffsetError,
)

logger = logging.getLogger(__name__)

FrameHandle = int
"""Index of a frame in the store."""


@dataclass(frozen=True)
class Frame:
    """A loaded excerpt covering ``[begin_byte, end_byte)`` of the file."""

    begin_byte: int
    end_byte: int
    begin_char: int
    end_char: int
    data: bytes
    text: str

    def covers_bytes(self, begin: int, end: int) -> bool:
        return self.begin_byte <= begin and end <= self.end_byte

    def covers_chars(self, begin: int, end: int) -> bool:
        return self.begin_char <= begin and end <= self.end_char

    def char_slice(self, begin: int, end: int) -> str:
        """Text of the absolute character range ``[begin, end)``."""
        if begin == self.begin_char and end == self.end_char:
            return self.text
        return self.text[begin - self.begin_char : end - self.begin_char]

    def byte_to_char(self, offset: int) -> int:
        """Absolute character offset of the absolute byte *offset*.

        Raises
        ------
        MisalignedByteOffsetError
            If *offset* falls inside a multi-byte character.
        """
        if offset == self.end_byte:
            return self.end_char
        if len(self.data) == len(self.text):
            return self.begin_char + (offset - self.begin_byte)
        head = self.data[: offset - self.begin_byte]
        try:
            return self.begin_char + len(head.decode("utf-8"))
        except UnicodeDecodeError:
            raise MisalignedByteOffsetError(offset) from None

    def byte_slice(self, begin: int, end: int) -> str:
        """Text of the absolute byte range ``[begin, end)``."""
        return self.char_slice(self.byte_to_char(begin), self.byte_to_char(end))


class _FrameTable:
    """Frame handles sorted by a begin offset; several frames may share one."""

    def __init__(self) -> None:
        self._keys: list[int] = []
        self._handles: list[list[FrameHandle]] = []

    def add(self, key: int, handle: FrameHandle) -> None:
        i = bisect_left(self._keys, key)
        if i < len(self._keys) and self._keys[i] == key:
            self._handles[i].append(handle)
        else:
            self._keys.insert(i, key)
            self._handles.insert(i, [handle])

    def candidates(self, begin: int) -> Iterator[FrameHandle]:
        """Yield handles of frames starting at or before *begin*, nearest first."""
        for i in range(bisect_right(self._keys, begin) - 1, -1, -1):
            yield from self._handles[i]


class FrameStore:
    """Append-only collection of frames over one source file.

    Parameters
    ----------
    read : Callable[[int, int], bytes]
        Returns the raw bytes ``[begin, end)`` of the source file.
    """

    def __init__(self, read: Callable[[int, int], bytes]) -> None:
        self._read = read
        self._frames: list[Frame] = []
        self._by_byte = _FrameTable()
        self._by_char = _FrameTable()

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(list(self._frames))

    def __getitem__(self, handle: FrameHandle) -> Frame:
        return self._frames[handle]

    @property
    def bytes_loaded(self) -> int:
        """Total size of all frames in bytes (overlaps counted twice)."""
        return sum(len(frame.data) for frame in self._frames)

    # ------------------------------------------------------------------
    # Lookup (never performs I/O)
    # ------------------------------------------------------------------

    def find_covering(self, begin: int, end: int) -> Frame | None:
        """Return a frame containing the byte range ``[begin, end)``, if any."""
        for handle in self._by_byte.candidates(begin):
            frame = self._frames[handle]
            if frame.end_byte >= end:
                return frame
        return None

    def find_covering_chars(self, begin: int, end: int) -> Frame | None:
        """Return a frame containing the character range ``[begin, end)``, if any."""
        for handle in self._by_char.candidates(begin):
            frame = self._frames[handle]
            if frame.end_char >= end:
                return frame
        return None

    def get(self, begin: int, end: int) -> str:
        """Text of the byte range ``[begin, end)`` from an existing frame.

        Raises
        ------
        FrameNotLoadedError
            If no loaded frame covers the range.
        MisalignedByteOffsetError
            If an offset is not on a character boundary.
        """
        frame = self.find_covering(begin, end)
        if frame is None:
            raise FrameNotLoadedError(begin, end)
        return frame.byte_slice(begin, end)

    def get_chars(self, begin: int, end: int) -> str:
        """Text of the character range ``[begin, end)`` from an existing frame."""
        frame = self.find_covering_chars(begin, end)
        if frame is None:
            raise FrameNotLoadedError(begin, end)
        return frame.char_slice(begin, end)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, begin_byte: int, end_byte: int, begin_char: int) -> str:
        """Read ``[begin_byte, end_byte)`` from disk into a new frame.

        The range must already be aligned to character boundaries, with
        *begin_char* the character offset of *begin_byte*.

        Returns
        -------
        str
            The text of the new frame.
        """
        return self.load_frame(begin_byte, end_byte, begin_char).text

    def load_frame(self, begin_byte: int, end_byte: int, begin_char: int) -> Frame:
        """Like :meth:`load` but returns the new :class:`Frame`.

        Raises
        ------
        InvertedRangeError
            If ``begin_byte > end_byte``.
        InvalidEncodingError
            If the bytes read are not valid UTF-8.
        OSError
            If the read fails or comes back short.
        """
        if begin_byte > end_byte:
            raise InvertedRangeError(begin_byte, end_byte)
        data = self._read(begin_byte, end_byte)
        if len(data) != end_byte - begin_byte:
            raise OSError(
                f"short read: expected {end_byte - begin_byte} bytes at {begin_byte}, "
                f"got {len(data)}"
            )
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(begin_byte + e.start, e.reason) from None
        frame = Frame(
            begin_byte=begin_byte,
            end_byte=end_byte,
            begin_char=begin_char,
            end_char=begin_char + len(text),
            data=data,
            text=text,
        )
        return self.add(frame)

    def add(self, frame: Frame) -> Frame:
        """Append an already decoded frame."""
        handle = len(self._frames)
        self._frames.append(frame)
        self._by_byte.add(frame.begin_byte, handle)
        self._by_char.add(frame.begin_char, handle)
        logger.debug(
            "Loaded frame #%d: bytes %d-%d, chars %d-%d",
            handle,
            frame.begin_byte,
            frame.end_byte,
            frame.begin_char,
            frame.end_char,
        )
        return frame
