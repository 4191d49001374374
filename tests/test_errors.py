"""Unit tests for the textframe exception hierarchy."""

from __future__ import annotations

import pytest

from textframe.errors import (
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


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error", "builtin"),
        [
            (EmptyTextError(), ValueError),
            (InvalidEncodingError(3), ValueError),
            (OffsetOutOfBoundsError(5, 4), IndexError),
            (LineOutOfBoundsError(5, 4), IndexError),
            (InvertedRangeError(2, 1), ValueError),
            (LineIndexDisabledError(), RuntimeError),
            (MisalignedByteOffsetError(1), ValueError),
            (FrameNotLoadedError(0, 1), LookupError),
            (IndexDecodeError("bad"), ValueError),
        ],
    )
    def test_builtin_base(self, error: TextFrameError, builtin: type[Exception]) -> None:
        assert isinstance(error, TextFrameError)
        assert isinstance(error, builtin)

    def test_line_error_is_offset_error(self) -> None:
        assert issubclass(LineOutOfBoundsError, OffsetOutOfBoundsError)

    def test_stale_cache_is_textframe_error(self) -> None:
        assert issubclass(StaleCacheError, TextFrameError)


class TestMessages:
    def test_frame_not_loaded(self) -> None:
        assert str(FrameNotLoadedError(3, 9)) == "text not loaded (3-9)"

    def test_out_of_bounds_units(self) -> None:
        assert str(OffsetOutOfBoundsError(10, 4)).startswith("offset 10")
        assert str(LineOutOfBoundsError(10, 4)).startswith("line 10")

    def test_invalid_encoding_reason(self) -> None:
        error = InvalidEncodingError(7, "invalid start byte")
        assert error.offset == 7
        assert "invalid start byte" in str(error)

    def test_empty_with_path(self) -> None:
        assert "corpus.txt" in str(EmptyTextError("corpus.txt"))
