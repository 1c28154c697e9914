from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, TypeVar

from fanout._parallel import parallel_map
from fanout._partition import chunk_bounds
from fanout._utils import (
    as_sequence,
    handle_error,
    hardware_parallelism,
    logger,
    validate_positive_int,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from concurrent.futures import Executor

T = TypeVar("T")
A = TypeVar("A")


def _fold_chunk(
    func: Callable[[A, Any], A],
    initial: A,
    unit: tuple[int, Sequence[Any]],
) -> A:
    start, chunk = unit
    acc = initial
    for offset, item in enumerate(chunk):
        try:
            acc = func(acc, item)
        except Exception as e:
            handle_error(e, func, (acc, item), start + offset)
            raise
    return acc


def parallel_reduce(
    func: Callable[[A, T], A],
    items: Iterable[T],
    initial: A,
    *,
    parallelism: int | None = None,
    executor: Executor | None = None,
) -> A:
    """Fold ``items`` into one value by reducing contiguous chunks in parallel.

    The sequence is split with `chunk_bounds` into roughly ``parallelism``
    chunks. Each chunk is folded sequentially starting from ``initial``, one
    `parallel_map` unit per chunk, and the chunk results are then folded
    sequentially, again starting from ``initial``.

    ``initial`` is therefore applied once per chunk plus once more in the final
    combine. The result equals ``functools.reduce(func, items, initial)`` only
    when ``initial`` is an identity element for ``func`` (``0`` for addition,
    ``1`` for multiplication, ``[]`` for list concatenation, ...).

    Parameters
    ----------
    func
        Combine function ``func(accumulator, element) -> accumulator``. It is also
        used to combine the chunk results, so it should be associative.
    items
        The elements to fold.
    initial
        Seed of every chunk fold and of the final combine.
    parallelism
        Target number of chunks. Defaults to the executor's worker count, or
        to `os.cpu_count` when no executor is given.
    executor
        Executor for the chunk folds, see `parallel_map`.

    Returns
    -------
        The combined value, or ``initial`` for an empty input.

    Examples
    --------
    >>> import operator
    >>> parallel_reduce(operator.add, [1, 2, 3, 4], 0, parallelism=2)
    10
    >>> parallel_reduce(operator.add, [1, 2, 3, 4], 10, parallelism=2)  # 10 + (10+1+2) + (10+3+4)
    40

    """
    validate_positive_int(parallelism, "parallelism")
    seq = as_sequence(items)
    if not seq:
        return initial
    if parallelism is None:
        parallelism = hardware_parallelism(executor)
    chunks = chunk_bounds(len(seq), parallelism)
    logger.debug("Reducing %d items in %d chunks", len(seq), len(chunks))
    fold = functools.partial(_fold_chunk, func, initial)
    units = [(chunk.lo, chunk.take(seq)) for chunk in chunks]
    partials = parallel_map(fold, units, executor=executor)
    return functools.reduce(func, partials, initial)
