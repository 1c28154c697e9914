"""Index-addressed result storage shared by the parallel and async runners.

Every concurrent unit owns exactly one index, so no two units ever write the
same slot and no lock around the arrays is needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

import numpy as np

from fanout.exceptions import SlotAlreadySetError, SlotNotSetError

if TYPE_CHECKING:
    from collections.abc import Sequence

T = TypeVar("T")


class ResultSlots(Generic[T]):
    """Fixed-size array of write-once slots.

    Parameters
    ----------
    size
        Number of slots, one per input element.

    """

    __slots__ = ("_is_set", "_values")

    def __init__(self, size: int) -> None:
        self._values: np.ndarray = np.empty(size, dtype=object)
        self._is_set: np.ndarray = np.zeros(size, dtype=bool)

    def __len__(self) -> int:
        return len(self._values)

    def __setitem__(self, index: int, value: T) -> None:
        if self._is_set[index]:
            msg = f"Slot {index} was already written."
            raise SlotAlreadySetError(msg)
        self._values[index] = value
        self._is_set[index] = True

    def __getitem__(self, index: int) -> T:
        if not self._is_set[index]:
            msg = f"Slot {index} has not been written."
            raise SlotNotSetError(msg)
        return self._values[index]

    @property
    def n_set(self) -> int:
        return int(self._is_set.sum())

    @property
    def missing(self) -> list[int]:
        """Indices of slots that were never written."""
        return np.flatnonzero(~self._is_set).tolist()

    def to_list(self) -> list[T]:
        """Return all values in index order; every slot must be set."""
        if not self._is_set.all():
            msg = f"Slots {self.missing} have not been written."
            raise SlotNotSetError(msg)
        return list(self._values)

    def compact(self) -> list[T]:
        """Return set, non-``None`` values in index order.

        The result can be shorter than ``len(self)``; surviving values are re-indexed.
        """
        return [v for v, ok in zip(self._values, self._is_set) if ok and v is not None]


class FlagSlots:
    """Boolean per-index flags used by the filters."""

    __slots__ = ("_flags",)

    def __init__(self, size: int) -> None:
        self._flags: np.ndarray = np.zeros(size, dtype=bool)

    def __len__(self) -> int:
        return len(self._flags)

    def __setitem__(self, index: int, value: Any) -> None:
        self._flags[index] = bool(value)

    def __getitem__(self, index: int) -> bool:
        return bool(self._flags[index])

    def select(self, items: Sequence[T]) -> list[T]:
        """Walk indices ``0..N-1`` in order and keep the items whose flag is set."""
        if len(items) != len(self._flags):
            msg = f"Expected {len(self._flags)} items to select from, got {len(items)}."
            raise ValueError(msg)
        return [items[i] for i in range(len(self._flags)) if self._flags[i]]
