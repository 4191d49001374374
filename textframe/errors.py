"""Exception hierarchy for textframe.

Every error raised by the library derives from :class:`TextFrameError` and
also from the closest builtin exception, so callers can write either
``except TextFrameError`` or ``except IndexError`` / ``except ValueError``.

Underlying I/O failures are not wrapped: they surface as :class:`OSError`.
"""

from __future__ import annotations


class TextFrameError(Exception):
    """Base class for all textframe errors."""


class EmptyTextError(TextFrameError, ValueError):
    """Raised when the source file contains zero bytes."""

    def __init__(self, path: object = None) -> None:
        self.path = path
        message = "text is empty" if path is None else f"text is empty: {path}"
        super().__init__(message)


class InvalidEncodingError(TextFrameError, ValueError):
    """Raised at the first byte sequence that is not valid UTF-8."""

    def __init__(self, offset: int, reason: str | None = None) -> None:
        self.offset = offset
        self.reason = reason
        message = f"invalid UTF-8 at byte offset {offset}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class OffsetOutOfBoundsError(TextFrameError, IndexError):
    """Raised when a requested offset falls outside ``[0, total]``."""

    unit = "offset"

    def __init__(self, requested: int, total: int) -> None:
        self.requested = requested
        self.total = total
        super().__init__(f"{self.unit} {requested} out of bounds (total {total})")


class LineOutOfBoundsError(OffsetOutOfBoundsError):
    """Raised when a requested line falls outside ``[0, line_count]``."""

    unit = "line"


class InvertedRangeError(TextFrameError, ValueError):
    """Raised when a range resolves to ``begin > end``."""

    def __init__(self, begin: int, end: int) -> None:
        self.begin = begin
        self.end = end
        super().__init__(f"inverted range ({begin}, {end})")


class LineIndexDisabledError(TextFrameError, RuntimeError):
    """Raised on a line-based operation when no line index was built."""

    def __init__(self) -> None:
        super().__init__("no line index enabled")


class MisalignedByteOffsetError(TextFrameError, ValueError):
    """Raised when a byte offset does not fall on a character boundary."""

    def __init__(self, offset: int) -> None:
        self.offset = offset
        super().__init__(f"byte offset {offset} is not on a UTF-8 character boundary")


class FrameNotLoadedError(TextFrameError, LookupError):
    """Raised by non-loading accessors when no frame covers the range."""

    def __init__(self, begin: int, end: int) -> None:
        self.begin = begin
        self.end = end
        super().__init__(f"text not loaded ({begin}-{end})")


class StaleCacheError(TextFrameError):
    """Raised when a cached index does not match the source file."""


class IndexDecodeError(TextFrameError, ValueError):
    """Raised when an index cache file cannot be decoded."""
