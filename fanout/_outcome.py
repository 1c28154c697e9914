from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """The value or exception produced by the unit that handled ``items[index]``."""

    index: int
    value: T | None = None
    exception: BaseException | None = None

    @classmethod
    def success(cls, index: int, value: T) -> Outcome[T]:
        return cls(index=index, value=value)

    @classmethod
    def failure(cls, index: int, exception: BaseException) -> Outcome[Any]:
        return cls(index=index, exception=exception)

    @property
    def ok(self) -> bool:
        return self.exception is None

    def unwrap(self) -> T:
        """Return the value or raise the stored exception."""
        if self.exception is not None:
            raise self.exception
        return self.value  # type: ignore[return-value]
