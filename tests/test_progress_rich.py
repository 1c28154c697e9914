from __future__ import annotations

import pytest

from fanout import parallel_filter, parallel_map
from fanout._progress import RichProgressTracker, Status, init_tracker


def test_init_tracker_rich():
    tracker = init_tracker(True, 4, "square")
    assert isinstance(tracker, RichProgressTracker)
    assert tracker.status.n_total == 4


def test_rich_tracker_updates_until_complete():
    status = Status(n_total=2)
    with RichProgressTracker(status, "work") as tracker:
        status.mark_in_progress(n=2)
        status.mark_complete()
        tracker.update_progress()
        status.mark_complete()
    assert status.progress == 1.0
    task = tracker._progress.tasks[0]
    assert task.completed == 2
    assert "work" in task.description


def test_parallel_map_with_progress():
    assert parallel_map(lambda x: x + 1, range(10), show_progress=True) == list(range(1, 11))


def test_parallel_filter_with_progress_and_failure():
    def predicate(x):
        if x == 4:
            msg = "bad"
            raise ValueError(msg)
        return True

    with pytest.raises(ValueError, match="bad"):
        parallel_filter(predicate, range(6), concurrency=2, show_progress=True)
