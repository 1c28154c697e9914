"""Bounded fan-out/fan-in over a `concurrent.futures.Executor`.

Every element gets its own unit of work. Units may finish in any order, but each
one owns exactly one index, so results are stitched back in input order.
"""

from __future__ import annotations

import contextlib
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from fanout._gate import ConcurrencyGate
from fanout._progress import RichProgressTracker, init_tracker
from fanout._slots import FlagSlots, ResultSlots
from fanout._utils import (
    as_sequence,
    function_name,
    handle_error,
    logger,
    maybe_cloudpickle,
    validate_positive_int,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Generator, Iterable, Sequence

T = TypeVar("T")
R = TypeVar("R")


@contextmanager
def _maybe_executor(
    executor: Executor | None,
    concurrency: int | None,
) -> Generator[Executor, None, None]:
    if executor is None:
        # shuts down the executor after use
        with ThreadPoolExecutor(max_workers=concurrency) as new_executor:
            yield new_executor
    else:
        yield executor


def _submit(
    func: Callable[..., Any],
    executor: Executor,
    gate: ConcurrencyGate | None,
    tracker: RichProgressTracker | None,
    *args: Any,
) -> Future:
    if gate is not None:
        gate.acquire()
    try:
        if tracker is not None:
            tracker.status.mark_in_progress()
        fut = executor.submit(func, *args)
    except BaseException:
        if gate is not None:
            gate.release()
        raise

    def _on_done(future: Future) -> None:
        if gate is not None:
            gate.release()
        if tracker is not None:
            tracker.status.mark_complete(future)
            tracker.update_progress()

    fut.add_done_callback(_on_done)
    return fut


def _run_units(
    func: Callable[..., Any],
    unit_args: Sequence[tuple[Any, ...]],
    store: Callable[[int, Any], None] | None,
    *,
    concurrency: int | None,
    executor: Executor | None,
    show_progress: bool,
) -> None:
    """Dispatch one unit per entry of ``unit_args`` and block until all of them finished.

    ``store(index, value)`` receives each unit's return value. After the join,
    the first failure (in completion order) is re-raised with a note attached.
    """
    n = len(unit_args)
    if n == 0:
        return
    name = function_name(func)
    tracker = init_tracker(show_progress, n, name)
    gate = ConcurrencyGate(concurrency) if concurrency is not None else None
    logger.debug("Dispatching %d units of `%s` (concurrency=%s)", n, name, concurrency)
    with _maybe_executor(executor, concurrency) as ex, tracker or contextlib.nullcontext():
        fn = maybe_cloudpickle(func, ex)
        future_to_index: dict[Future, int] = {}
        for index, args in enumerate(unit_args):
            fut = _submit(fn, ex, gate, tracker, *args)
            future_to_index[fut] = index

        first_exc: Exception | None = None
        for fut in as_completed(future_to_index):
            index = future_to_index[fut]
            try:
                value = fut.result()
            except Exception as e:
                if first_exc is None:
                    handle_error(e, func, unit_args[index], index)
                    first_exc = e
                continue
            if store is not None:
                store(index, value)
    if gate is not None:
        logger.debug("Joined %d units of `%s`, peak concurrency %d", n, name, gate.peak)
    if first_exc is not None:
        raise first_exc


def parallel_map(
    func: Callable[[T], R],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
    executor: Executor | None = None,
    show_progress: bool = False,
) -> list[R]:
    """Apply ``func`` to every element in parallel, returning results in input order.

    Parameters
    ----------
    func
        Function called exactly once per element.
    items
        The elements to process. Non-sequence iterables are materialized first.
    concurrency
        Maximum number of ``func`` calls that are active at the same time.
        If ``None``, every element is submitted at once and concurrency is only
        bounded by the executor.
    executor
        Executor to run the calls on. If ``None``, a `~concurrent.futures.ThreadPoolExecutor`
        is created for this call and shut down before returning. Functions sent to
        any other executor type are serialized with ``cloudpickle``.
    show_progress
        Show a ``rich`` progress bar.

    Returns
    -------
        ``[func(x) for x in items]``, computed concurrently.

    Raises
    ------
    ValueError
        If ``concurrency`` is not a positive integer.

    """
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    slots: ResultSlots[R] = ResultSlots(len(seq))
    _run_units(
        func,
        [(x,) for x in seq],
        slots.__setitem__,
        concurrency=concurrency,
        executor=executor,
        show_progress=show_progress,
    )
    return slots.to_list()


def parallel_compact_map(
    func: Callable[[T], R | None],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
    executor: Executor | None = None,
    show_progress: bool = False,
) -> list[R]:
    """Like `parallel_map`, but drop results that are ``None``.

    The output may be shorter than ``items``: surviving results keep their
    relative order but are re-indexed.
    """
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    slots: ResultSlots[R | None] = ResultSlots(len(seq))
    _run_units(
        func,
        [(x,) for x in seq],
        slots.__setitem__,
        concurrency=concurrency,
        executor=executor,
        show_progress=show_progress,
    )
    return slots.compact()  # type: ignore[return-value]


def parallel_for_each(
    func: Callable[[T], Any],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
    executor: Executor | None = None,
    show_progress: bool = False,
) -> None:
    """Call ``func`` on every element for its side effects.

    Side effects of different elements happen in no particular order.
    """
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    _run_units(
        func,
        [(x,) for x in seq],
        None,
        concurrency=concurrency,
        executor=executor,
        show_progress=show_progress,
    )


def parallel_enumerated(
    func: Callable[[int, T], Any],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
    executor: Executor | None = None,
    show_progress: bool = False,
) -> None:
    """Call ``func(index, element)`` on every element for its side effects."""
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    _run_units(
        func,
        list(enumerate(seq)),
        None,
        concurrency=concurrency,
        executor=executor,
        show_progress=show_progress,
    )


def parallel_filter(
    predicate: Callable[[T], Any],
    items: Iterable[T],
    *,
    concurrency: int | None = None,
    executor: Executor | None = None,
    show_progress: bool = False,
) -> list[T]:
    """Return the elements for which ``predicate`` is truthy, in their original order.

    The predicate is evaluated concurrently, the selection pass afterwards is sequential.
    """
    validate_positive_int(concurrency, "concurrency")
    seq = as_sequence(items)
    flags = FlagSlots(len(seq))
    _run_units(
        predicate,
        [(x,) for x in seq],
        flags.__setitem__,
        concurrency=concurrency,
        executor=executor,
        show_progress=show_progress,
    )
    return flags.select(seq)
