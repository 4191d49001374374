"""Resolution of relative (negative, end-relative) ranges.

The same rules apply to character offsets and to line numbers:

* a non-negative value is absolute;
* a negative value ``v`` means ``total + v``;
* an *end* of exactly ``0`` means ``total``, so ``(0, 0)`` is the whole
  document and ``(-10, 0)`` the last ten units;
* ranges are end-exclusive.

Negative values are resolved before any bounds check, and a value that
resolves below zero is an error rather than being clamped.
"""

from __future__ import annotations

from .errors import InvertedRangeError, OffsetOutOfBoundsError


def resolve_offset(
    value: int,
    total: int,
    *,
    error: type[OffsetOutOfBoundsError] = OffsetOutOfBoundsError,
) -> int:
    """Resolve a single (possibly negative) offset against *total*.

    Parameters
    ----------
    value : int
        Absolute offset, or negative offset relative to the end.
    total : int
        Total number of units (characters or lines).
    error : type[OffsetOutOfBoundsError]
        Exception class raised when the result is out of ``[0, total]``.

    Returns
    -------
    int
        Absolute offset in ``[0, total]``.
    """
    absolute = total + value if value < 0 else value
    if absolute < 0 or absolute > total:
        raise error(value, total)
    return absolute


def resolve_range(
    begin: int,
    end: int,
    total: int,
    *,
    error: type[OffsetOutOfBoundsError] = OffsetOutOfBoundsError,
) -> tuple[int, int]:
    """Resolve a ``(begin, end)`` range to absolute, bounds-checked values.

    Parameters
    ----------
    begin : int
        Begin offset (negative is relative to the end).
    end : int
        End offset, exclusive. ``0`` means the end of the document,
        negative is relative to the end.
    total : int
        Total number of units (characters or lines).
    error : type[OffsetOutOfBoundsError]
        Exception class for out-of-bounds endpoints.

    Returns
    -------
    tuple[int, int]
        ``(abs_begin, abs_end)`` with ``0 <= abs_begin <= abs_end <= total``.

    Raises
    ------
    OffsetOutOfBoundsError
        If an endpoint resolves outside ``[0, total]``.
    InvertedRangeError
        If the resolved begin lies after the resolved end.
    """
    abs_begin = resolve_offset(begin, total, error=error)
    abs_end = total if end == 0 else resolve_offset(end, total, error=error)
    if abs_begin > abs_end:
        raise InvertedRangeError(abs_begin, abs_end)
    return abs_begin, abs_end
