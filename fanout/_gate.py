from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from fanout._utils import validate_positive_int

if TYPE_CHECKING:
    from types import TracebackType


class ConcurrencyGate:
    """A counting permit pool bounding how many units are active at once.

    Parameters
    ----------
    permits
        Maximum number of simultaneously held permits, must be ``>= 1``.

    """

    def __init__(self, permits: int) -> None:
        validate_positive_int(permits, "permits", allow_none=False)
        self.permits = permits
        self._semaphore = threading.BoundedSemaphore(permits)
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def acquire(self) -> None:
        """Block until a permit is available and take it."""
        self._semaphore.acquire()
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)

    def release(self) -> None:
        """Return a permit to the pool."""
        with self._lock:
            if self.active == 0:
                msg = "ConcurrencyGate released too many times"
                raise ValueError(msg)
            self.active -= 1
        self._semaphore.release()

    def __enter__(self) -> ConcurrencyGate:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"ConcurrencyGate(permits={self.permits}, active={self.active}, peak={self.peak})"
