"""Sequential batching; nothing in here runs concurrently."""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any, TypeVar

from fanout._utils import validate_positive_int

if TYPE_CHECKING:
    from collections.abc import Callable, Generator, Iterable

T = TypeVar("T")
R = TypeVar("R")


def _batched(items: Iterable[T], batch_size: int) -> Generator[list[T], None, None]:
    # The same implementation as outlined in the itertools.batched() documentation
    # but yielding lists, so every batch is a fresh copy the caller may mutate.
    iterator = iter(items)
    while batch := list(itertools.islice(iterator, batch_size)):
        yield batch


def batched(items: Iterable[T], batch_size: int) -> Generator[list[T], None, None]:
    """Yield consecutive lists of ``batch_size`` elements; the last one may be shorter.

    Raises
    ------
    ValueError
        If ``batch_size`` is not a positive integer. Raised immediately, not on
        the first iteration.

    """
    validate_positive_int(batch_size, "batch_size", allow_none=False)
    return _batched(items, batch_size)


def process_batches(
    handler: Callable[[list[T]], Any],
    items: Iterable[T],
    batch_size: int,
) -> None:
    """Call ``handler`` once per batch of ``batch_size`` elements, in order.

    A final, partial batch is passed too when the length is not a multiple
    of ``batch_size``.
    """
    for batch in batched(items, batch_size):
        handler(batch)


def batch_map(
    func: Callable[[list[T]], Iterable[R]],
    items: Iterable[T],
    batch_size: int,
) -> list[R]:
    """Map whole batches with ``func`` and concatenate the outputs in batch order.

    Examples
    --------
    >>> batch_map(lambda batch: [sum(batch)], range(7), 3)
    [3, 12, 6]

    """
    results: list[R] = []
    process_batches(lambda batch: results.extend(func(batch)), items, batch_size)
    return results
