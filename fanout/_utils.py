"""General utility functions, should not import anything from fanout."""

from __future__ import annotations

import importlib.util
import logging
import os
import sys
import warnings
from collections.abc import Sequence
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, TypeVar

import cloudpickle

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

T = TypeVar("T")

logger = logging.getLogger("fanout")
logger.addHandler(logging.NullHandler())


def as_sequence(items: Iterable[T]) -> Sequence[T]:
    """Return ``items`` as an indexable sequence, materializing iterables once."""
    if isinstance(items, Sequence):
        return items
    return list(items)


def validate_positive_int(value: Any, name: str, *, allow_none: bool = True) -> None:
    """Raise a `ValueError` unless ``value`` is an ``int >= 1`` (or ``None`` if allowed)."""
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        msg = f"`{name}` must be a positive integer, got {value!r}"
        raise ValueError(msg)


def format_args(args: tuple) -> str:
    """Format args as a string."""
    return ", ".join(repr(arg) for arg in args)


def format_function_call(func_name: str, args: tuple) -> str:
    """Format a function call as a string."""
    return f"{func_name}({format_args(args)})"


def function_name(func: Callable[..., Any]) -> str:
    """Return a readable name for ``func``, unwrapping `CloudpickledCallable`."""
    if isinstance(func, CloudpickledCallable):
        func = func.func
    return getattr(func, "__name__", None) or type(func).__name__


def handle_error(e: BaseException, func: Callable[..., Any], args: tuple, index: int) -> None:
    """Annotate an error that occurred while applying ``func`` to one element.

    Errors that already carry an ``error_snapshot`` were annotated closer to the
    failing element and are left untouched.
    """
    from fanout.exceptions import ErrorSnapshot

    if hasattr(e, "error_snapshot"):
        return
    if isinstance(func, CloudpickledCallable):
        func = func.func
    call_str = format_function_call(function_name(func), args)
    msg = f"Error occurred while executing `{call_str}` at index {index}."
    if isinstance(e, Exception):
        e.error_snapshot = ErrorSnapshot(func, e, args=args, index=index)  # type: ignore[attr-defined]
    e.add_note(msg)


class CloudpickledCallable:
    """Wrap a callable so it is serialized with `cloudpickle` when sent to another process.

    This allows lambdas and closures to be used with a
    `concurrent.futures.ProcessPoolExecutor`.
    """

    __slots__ = ("func",)

    def __init__(self, func: Callable[..., Any]) -> None:
        self.func = func

    def __call__(self, *args: Any) -> Any:
        return self.func(*args)

    def __getstate__(self) -> bytes:
        return cloudpickle.dumps(self.func)

    def __setstate__(self, state: bytes) -> None:
        self.func = cloudpickle.loads(state)


def maybe_cloudpickle(func: Callable[..., Any], executor: Executor) -> Callable[..., Any]:
    """Wrap ``func`` with `CloudpickledCallable` unless it stays in this process."""
    if isinstance(executor, ThreadPoolExecutor) or isinstance(func, CloudpickledCallable):
        return func
    return CloudpickledCallable(func)


def is_installed(package: str) -> bool:
    """Check if a package is installed."""
    return importlib.util.find_spec(package) is not None


def is_imported(package: str) -> bool:
    """Check if a package is imported."""
    return package in sys.modules


def requires(*packages: str, reason: str = "", extras: str | None = None) -> None:
    """Check if a package is installed, raise an ImportError if not."""
    for package in packages:
        if is_installed(package):
            continue
        error_message = f"The '{package}' package is required"
        if reason:
            error_message += f" for {reason}"
        error_message += ".\n"
        error_message += "Please install it using one of the following methods:\n"
        if extras:
            error_message += f'- pip install "fanout[{extras}]"\n'
        error_message += f"- pip install {package}\n"
        error_message += f"- conda install -c conda-forge {package}"
        raise ImportError(error_message)


def get_ncores(ex: Executor) -> int:
    """Return the maximum number of cores that an executor can use."""
    if isinstance(ex, ProcessPoolExecutor | ThreadPoolExecutor):
        return ex._max_workers  # type: ignore[union-attr]
    if is_imported("loky"):  # pragma: no cover
        import loky

        if isinstance(ex, loky.reusable_executor._ReusablePoolExecutor):
            return ex._max_workers
    msg = f"Cannot get number of cores for {ex.__class__}"
    raise TypeError(msg)


def hardware_parallelism(executor: Executor | None = None) -> int:
    """Return the parallelism available to ``executor``, or to this machine if ``None``."""
    if executor is None:
        return os.cpu_count() or 1
    try:
        return max(1, get_ncores(executor))
    except TypeError as e:
        warnings.warn(f"Automatic parallelism detection failed with: {e}", stacklevel=3)
        return 1
