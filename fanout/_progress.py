from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fanout._utils import requires

if TYPE_CHECKING:
    from concurrent.futures import Future

    from rich.progress import Progress, TaskID


@dataclass
class Status:
    """A class to keep track of the progress of a parallel call."""

    n_total: int
    n_in_progress: int = 0
    n_completed: int = 0
    n_failed: int = 0
    start_time: float | None = None
    end_time: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def n_left(self) -> int:
        return self.n_total - self.n_attempted

    def mark_in_progress(self, *, n: int = 1) -> None:
        with self._lock:
            if self.start_time is None:
                self.start_time = time.monotonic()
            self.n_in_progress += n

    def mark_complete(self, future: Future | None = None, *, n: int = 1) -> None:
        with self._lock:
            self.n_in_progress -= n
            if future is not None and future.exception() is not None:
                self.n_failed += n
            else:
                self.n_completed += n
            if self.n_attempted >= self.n_total:
                self.end_time = time.monotonic()

    @property
    def progress(self) -> float:
        if self.n_total == 0:
            return 1.0
        return self.n_attempted / self.n_total

    @property
    def n_attempted(self) -> int:
        return self.n_completed + self.n_failed

    def elapsed_time(self) -> float:
        if self.start_time is None:  # Happens when n_total is 0
            return 0.0
        if self.end_time is None:
            return time.monotonic() - self.start_time
        return self.end_time - self.start_time

    def remaining_time(self, *, elapsed_time: float | None = None) -> float | None:
        if elapsed_time is None:
            elapsed_time = self.elapsed_time()
        if elapsed_time == 0:
            return None
        progress = self.progress
        if progress == 0:
            return None
        return (1.0 - progress) * (elapsed_time / progress)


class RichProgressTracker:
    """Text-based progress bar for a single parallel call, using rich.progress."""

    def __init__(self, status: Status, description: str) -> None:
        from rich.progress import (
            BarColumn,
            MofNCompleteColumn,
            Progress,
            SpinnerColumn,
            TextColumn,
        )

        self.status = status
        self.description = description
        self._progress: Progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}[/bold blue]"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.1f}%"),
            MofNCompleteColumn(),
            TextColumn("{task.fields[elapsed_time]}", style="progress.elapsed"),
            TextColumn("{task.fields[remaining_time]}", style="progress.remaining"),
            auto_refresh=False,
        )
        self._task_id: TaskID = self._progress.add_task(
            description,
            total=status.n_total,
            completed=0,
            elapsed_time=_format_time(0.0),
            remaining_time=_format_time(None),
        )

    def __enter__(self) -> RichProgressTracker:
        self._progress.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.update_progress()
        self._progress.stop()

    def update_progress(self, _: object = None) -> None:
        """Update the progress values; safe to call from worker threads."""
        status = self.status
        elapsed_time = status.elapsed_time()
        self._progress.update(
            self._task_id,
            completed=status.n_attempted,
            elapsed_time=_format_time(elapsed_time),
            remaining_time=_format_time(status.remaining_time(elapsed_time=elapsed_time)),
        )
        if status.progress >= 1.0:
            if status.n_failed == 0:
                description = f"[bold green]{self.description}[/bold green]"
            else:
                description = f"[bold red]{self.description} ({status.n_failed} failed)[/bold red]"
            self._progress.update(self._task_id, description=description)
        self._progress.refresh()


def init_tracker(
    show_progress: bool,
    n_total: int,
    description: str,
) -> RichProgressTracker | None:
    if not show_progress:
        return None
    requires("rich", reason="show_progress", extras="rich")
    return RichProgressTracker(Status(n_total=n_total), description)


def _format_time(seconds: float | None) -> str:
    if seconds is None:
        return "--:--"
    # Based on https://github.com/tqdm/tqdm/blob/master/tqdm/std.py
    minutes, seconds = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if not hours:
        return f"{minutes:02d}:{seconds:02d}"
    return f"{hours:d}:{minutes:02d}:{seconds:02d}"
