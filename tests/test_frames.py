"""Unit tests for textframe.frames."""

from __future__ import annotations

import pytest

from textframe.errors import (
    FrameNotLoadedError,
    InvalidEncodingError,
    InvertedRangeError,
    MisalignedByteOffsetError,
)
from textframe.frames import Frame, FrameStore

TEXT = "abc日本語xyz"
DATA = TEXT.encode("utf-8")  # 3 + 9 + 3 = 15 bytes


class _Source:
    """Byte source that records every read."""

    def __init__(self, data: bytes = DATA) -> None:
        self.data = data
        self.reads: list[tuple[int, int]] = []

    def __call__(self, begin: int, end: int) -> bytes:
        self.reads.append((begin, end))
        return self.data[begin:end]


@pytest.fixture
def source() -> _Source:
    return _Source()


@pytest.fixture
def store(source: _Source) -> FrameStore:
    return FrameStore(source)


class TestFrame:
    def _frame(self) -> Frame:
        return Frame(10, 25, 5, 14, DATA, TEXT)

    def test_covers(self) -> None:
        frame = self._frame()
        assert frame.covers_bytes(10, 25)
        assert frame.covers_bytes(13, 16)
        assert not frame.covers_bytes(9, 12)
        assert frame.covers_chars(5, 14)
        assert not frame.covers_chars(5, 15)

    def test_char_slice(self) -> None:
        frame = self._frame()
        assert frame.char_slice(8, 11) == "日本語"
        assert frame.char_slice(5, 14) is frame.text

    def test_byte_slice(self) -> None:
        frame = self._frame()
        assert frame.byte_slice(13, 22) == "日本語"
        assert frame.byte_slice(22, 25) == "xyz"

    def test_byte_to_char_misaligned(self) -> None:
        frame = self._frame()
        with pytest.raises(MisalignedByteOffsetError) as exc_info:
            frame.byte_to_char(14)
        assert exc_info.value.offset == 14


class TestFrameStoreLoad:
    def test_load_returns_text(self, store: FrameStore, source: _Source) -> None:
        assert store.load(3, 12, 3) == "日本語"
        assert source.reads == [(3, 12)]
        assert len(store) == 1

    def test_load_records_char_range(self, store: FrameStore) -> None:
        frame = store.load_frame(3, 12, 3)
        assert (frame.begin_char, frame.end_char) == (3, 6)
        assert (frame.begin_byte, frame.end_byte) == (3, 12)

    def test_empty_frame(self, store: FrameStore) -> None:
        assert store.load(5, 5, 3) == ""

    def test_frames_may_overlap(self, store: FrameStore) -> None:
        store.load(0, 12, 0)
        store.load(3, 15, 3)
        assert len(store) == 2
        assert store.bytes_loaded == 24

    def test_inverted(self, store: FrameStore) -> None:
        with pytest.raises(InvertedRangeError):
            store.load(12, 3, 3)

    def test_misaligned_data(self, store: FrameStore) -> None:
        with pytest.raises(InvalidEncodingError) as exc_info:
            store.load(4, 12, 3)
        assert exc_info.value.offset == 4
        assert len(store) == 0

    def test_short_read(self) -> None:
        store = FrameStore(_Source(DATA[:5]))
        with pytest.raises(OSError, match="short read"):
            store.load(0, 15, 0)

    def test_handles_are_stable(self, store: FrameStore) -> None:
        first = store.load_frame(0, 3, 0)
        store.load_frame(3, 15, 3)
        assert store[0] is first
        assert list(store)[0] is first


class TestFrameStoreLookup:
    def test_get_without_frames(self, store: FrameStore) -> None:
        with pytest.raises(FrameNotLoadedError, match="text not loaded"):
            store.get(0, 3)

    def test_get_by_bytes(self, store: FrameStore, source: _Source) -> None:
        store.load(0, 15, 0)
        assert store.get(3, 12) == "日本語"
        assert store.get(12, 15) == "xyz"
        assert source.reads == [(0, 15)]

    def test_get_by_chars(self, store: FrameStore, source: _Source) -> None:
        store.load(0, 15, 0)
        assert store.get_chars(3, 6) == "日本語"
        assert source.reads == [(0, 15)]

    def test_get_outside_frame(self, store: FrameStore) -> None:
        store.load(3, 12, 3)
        with pytest.raises(FrameNotLoadedError):
            store.get(0, 6)
        with pytest.raises(FrameNotLoadedError):
            store.get_chars(4, 7)

    def test_get_misaligned(self, store: FrameStore) -> None:
        store.load(0, 15, 0)
        with pytest.raises(MisalignedByteOffsetError):
            store.get(4, 12)

    def test_find_covering_prefers_any_covering_frame(self, store: FrameStore) -> None:
        wide = store.load_frame(0, 15, 0)
        store.load_frame(3, 6, 3)
        assert store.find_covering(3, 12) is wide
        assert store.find_covering_chars(4, 7) is wide

    def test_find_covering_none(self, store: FrameStore) -> None:
        store.load(0, 3, 0)
        assert store.find_covering(0, 4) is None
        assert store.find_covering_chars(2, 4) is None

    def test_text_survives_later_loads(self, store: FrameStore) -> None:
        text = store.load(0, 3, 0)
        for begin_byte, begin_char in [(0, 0), (3, 3), (6, 4), (9, 5), (12, 6)]:
            store.load(begin_byte, 15, begin_char)
        assert text == "abc"
        assert store[0].text == "abc"
        assert len(store) == 6
