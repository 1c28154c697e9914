"""Structured concurrency for coroutines: a scope that owns every task it spawns."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from fanout._outcome import Outcome
from fanout._slots import ResultSlots
from fanout._utils import function_name, handle_error, logger, validate_positive_int
from fanout.exceptions import ScopeCancelledError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType


class TaskScope:
    """Own a set of `asyncio.Task`s and guarantee none of them outlives the scope.

    Use as ``async with TaskScope() as scope:``, call `spawn` once per element and
    then `collect` the results. When the scope exits, unfinished tasks are
    cancelled and every task is awaited; outcomes of cancelled tasks are discarded.

    Parameters
    ----------
    concurrency
        Maximum number of coroutines awaited at the same time. If ``None`` (default),
        all spawned coroutines run concurrently.

    """

    def __init__(self, *, concurrency: int | None = None) -> None:
        validate_positive_int(concurrency, "concurrency")
        self.concurrency = concurrency
        self._semaphore = asyncio.Semaphore(concurrency) if concurrency is not None else None
        self._tasks: dict[asyncio.Task[Outcome], int] = {}
        self._cancel_requested = False

    @property
    def n_spawned(self) -> int:
        return len(self._tasks)

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    async def __aenter__(self) -> TaskScope:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if any(not task.done() for task in self._tasks):
            self.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def spawn(self, index: int, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        """Start ``func(*args)`` as a task whose result is tagged with ``index``."""
        task = asyncio.create_task(self._run(index, func, *args))
        self._tasks[task] = index

    async def _run(self, index: int, func: Callable[..., Awaitable[Any]], *args: Any) -> Outcome:
        try:
            if self._semaphore is None:
                value = await func(*args)
            else:
                async with self._semaphore:
                    value = await func(*args)
        except Exception as e:  # noqa: BLE001
            handle_error(e, func, args, index)
            return Outcome.failure(index, e)
        return Outcome.success(index, value)

    def cancel(self) -> None:
        """Request cancellation of every task that has not finished yet.

        Cancellation is cooperative: a task only notices it at its next ``await``.
        """
        self._cancel_requested = True
        n_cancelled = 0
        for task in self._tasks:
            if not task.done():
                task.cancel()
                n_cancelled += 1
        logger.debug("Cancelled %d outstanding tasks", n_cancelled)

    async def collect(self, size: int | None = None) -> list[Any]:
        """Wait for all tasks and return their values ordered by index.

        On the first failure (in completion order) the remaining tasks are
        cancelled and that failure is raised; no partial result is returned.

        Raises
        ------
        ScopeCancelledError
            If `cancel` was called before every task produced its value.

        """
        slots: ResultSlots[Any] = ResultSlots(self.n_spawned if size is None else size)
        pending = set(self._tasks)
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in sorted(done, key=self._tasks.__getitem__):
                if task.cancelled():
                    continue
                outcome = task.result()
                if not outcome.ok:
                    self.cancel()
                slots[outcome.index] = outcome.unwrap()
        if self._cancel_requested and slots.n_set < len(slots):
            msg = f"TaskScope was cancelled before slots {slots.missing} were filled."
            raise ScopeCancelledError(msg)
        return slots.to_list()


async def run_in_scope(
    func: Callable[..., Awaitable[Any]],
    unit_args: list[tuple[Any, ...]],
    *,
    concurrency: int | None,
) -> list[Any]:
    """Spawn one task per entry of ``unit_args`` and collect the ordered results."""
    if not unit_args:
        return []
    logger.debug("Spawning %d tasks of `%s`", len(unit_args), function_name(func))
    async with TaskScope(concurrency=concurrency) as scope:
        for index, args in enumerate(unit_args):
            scope.spawn(index, func, *args)
        return await scope.collect(len(unit_args))
