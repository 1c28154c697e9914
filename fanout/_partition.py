from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple, TypeVar

from fanout._utils import logger, validate_positive_int

if TYPE_CHECKING:
    from collections.abc import Sequence

T = TypeVar("T")


class Chunk(NamedTuple):
    """Half-open index range ``[lo, hi)`` of a sequence."""

    lo: int
    hi: int

    @property
    def size(self) -> int:
        return self.hi - self.lo

    def take(self, items: Sequence[T]) -> list[T]:
        return list(items[self.lo : self.hi])


def chunk_bounds(total: int, parallelism: int) -> list[Chunk]:
    """Split ``range(total)`` into contiguous chunks for ``parallelism`` workers.

    There are ``min(parallelism, total)`` chunks of ``max(1, total // parallelism)``
    elements each, except the last chunk which absorbs the remainder. Together
    they cover ``[0, total)`` without gaps or overlaps.

    Examples
    --------
    >>> chunk_bounds(7, 2)
    [Chunk(lo=0, hi=3), Chunk(lo=3, hi=7)]
    >>> chunk_bounds(10, 4)
    [Chunk(lo=0, hi=2), Chunk(lo=2, hi=4), Chunk(lo=4, hi=6), Chunk(lo=6, hi=10)]

    """
    validate_positive_int(parallelism, "parallelism", allow_none=False)
    if total < 0:
        msg = f"`total` must be non-negative, got {total}"
        raise ValueError(msg)
    if total == 0:
        return []
    size = max(1, total // parallelism)
    n_chunks = min(parallelism, total)
    chunks = [Chunk(i * size, (i + 1) * size) for i in range(n_chunks - 1)]
    chunks.append(Chunk((n_chunks - 1) * size, total))
    logger.debug("Partitioned %d items into %d chunks of size %d", total, n_chunks, size)
    return chunks
