"""Define error-related classes for `fanout`."""

from __future__ import annotations

import datetime
import os
import platform
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import cloudpickle

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


class SlotAlreadySetError(RuntimeError):
    """Exception raised when a result slot is written more than once."""


class SlotNotSetError(RuntimeError):
    """Exception raised when reading results while some slots were never written."""


class ScopeCancelledError(RuntimeError):
    """Exception raised when a cancelled `TaskScope` cannot fill every result slot."""


def _timestamp() -> str:
    return datetime.datetime.now(tz=datetime.timezone.utc).isoformat()


@dataclass
class ErrorSnapshot:
    """A snapshot that represents a failed call on a single element."""

    function: Callable[..., Any]
    exception: Exception
    args: tuple[Any, ...]
    index: int
    traceback: str = field(init=False)
    timestamp: str = field(default_factory=_timestamp)
    machine: str = field(default_factory=platform.node)
    current_directory: str = field(default_factory=os.getcwd)

    def __post_init__(self) -> None:
        """Initialize the error snapshot with a formatted traceback."""
        tb = traceback.format_exception(
            type(self.exception),
            self.exception,
            self.exception.__traceback__,
        )
        self.traceback = "".join(tb)

    def __repr__(self) -> str:
        """Return a concise representation."""
        func_name = getattr(self.function, "__name__", "?")
        exc_type = type(self.exception).__name__
        return f"ErrorSnapshot({func_name!r}, index={self.index}, {exc_type}: {self.exception})"

    def __str__(self) -> str:
        """Return a detailed string representation of the error snapshot."""
        args_repr = ", ".join(repr(a) for a in self.args)
        func_name = getattr(self.function, "__qualname__", repr(self.function))
        return (
            "ErrorSnapshot:\n"
            "--------------\n"
            f"- Function: {func_name}\n"
            f"- Exception type: {type(self.exception).__name__}\n"
            f"- Exception message: {self.exception}\n"
            f"- Index: {self.index}\n"
            f"- Args: ({args_repr})\n"
            f"- Timestamp: {self.timestamp}\n"
            f"- Machine: {self.machine}\n"
            f"- Current Directory: {self.current_directory}\n"
            "\n"
            "Reproduce the error by calling `error_snapshot.reproduce()`.\n"
            "Or see the full stored traceback using `error_snapshot.traceback`."
        )

    def reproduce(self) -> Any | None:
        """Attempt to recreate the error by calling the function with stored arguments."""
        return self.function(*self.args)

    def save_to_file(self, filename: str | Path) -> None:
        """Save the error snapshot to a file using cloudpickle."""
        with open(filename, "wb") as f:  # noqa: PTH123
            cloudpickle.dump(self, f)

    @classmethod
    def load_from_file(cls, filename: str | Path) -> ErrorSnapshot:
        """Load an error snapshot from a file using cloudpickle."""
        with open(filename, "rb") as f:  # noqa: PTH123
            return cloudpickle.load(f)

    def __getstate__(self) -> dict[str, Any]:
        """Custom pickling to handle function references using cloudpickle."""
        state = self.__dict__.copy()
        state["function"] = cloudpickle.dumps(state["function"])
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Custom unpickling to restore function references."""
        if isinstance(state.get("function"), bytes):
            state["function"] = cloudpickle.loads(state["function"])
        self.__dict__.update(state)
