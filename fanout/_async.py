from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from fanout._slots import FlagSlots
from fanout._task_scope import run_in_scope
from fanout._utils import as_sequence, validate_positive_int

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

T = TypeVar("T")
R = TypeVar("R")


async def async_map(
    func: Callable[[T], Awaitable[R]],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
) -> list[R]:
    """Await ``func`` on every element concurrently, returning results in input order.

    All calls are spawned as tasks in a `TaskScope`. If one of them raises, the
    first error observed is re-raised, the other tasks are cancelled and no
    partial result is returned. Cancellation is best-effort: work past its
    last ``await`` still finishes.

    Parameters
    ----------
    func
        Coroutine function called exactly once per element.
    items
        The elements to process.
    concurrency
        Optional cap on how many calls are awaited at the same time.

    """
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    return await run_in_scope(func, [(x,) for x in seq], concurrency=concurrency)


async def async_filter(
    predicate: Callable[[T], Awaitable[Any]],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
) -> list[T]:
    """Return the elements for which the awaited ``predicate`` is truthy, in order."""
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    results = await run_in_scope(predicate, [(x,) for x in seq], concurrency=concurrency)
    flags = FlagSlots(len(seq))
    for index, keep in enumerate(results):
        flags[index] = keep
    return flags.select(seq)


async def async_for_each(
    func: Callable[[T], Awaitable[Any]],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
) -> None:
    """Await ``func`` on every element concurrently for its side effects."""
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    await run_in_scope(func, [(x,) for x in seq], concurrency=concurrency)


async def async_enumerated(
    func: Callable[[int, T], Awaitable[Any]],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
) -> None:
    """Await ``func(index, element)`` on every element concurrently."""
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    await run_in_scope(func, list(enumerate(seq)), concurrency=concurrency)
