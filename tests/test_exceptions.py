from __future__ import annotations

import pytest

from fanout import parallel_map
from fanout.exceptions import ErrorSnapshot


def _divide_ten(x: int) -> float:
    return 10 / x


def _snapshot_from_failure() -> ErrorSnapshot:
    with pytest.raises(ZeroDivisionError) as exc_info:
        parallel_map(_divide_ten, [1, 0, 2])
    return exc_info.value.error_snapshot


def test_error_snapshot_attached_to_failure():
    snapshot = _snapshot_from_failure()
    assert snapshot.function is _divide_ten
    assert snapshot.index == 1
    assert snapshot.args == (0,)
    assert "ZeroDivisionError" in snapshot.traceback
    assert repr(snapshot).startswith("ErrorSnapshot('_divide_ten', index=1, ZeroDivisionError")
    text = str(snapshot)
    assert "- Index: 1" in text
    assert "- Args: (0)" in text


def test_error_snapshot_reproduce():
    snapshot = _snapshot_from_failure()
    with pytest.raises(ZeroDivisionError):
        snapshot.reproduce()


def test_error_snapshot_save_and_load(tmp_path):
    snapshot = _snapshot_from_failure()
    path = tmp_path / "snapshot.pkl"
    snapshot.save_to_file(path)
    loaded = ErrorSnapshot.load_from_file(path)
    assert loaded.index == snapshot.index
    assert loaded.args == snapshot.args
    assert loaded.traceback == snapshot.traceback
    assert loaded.function(5) == 2.0


def test_error_snapshot_with_lambda_round_trips(tmp_path):
    with pytest.raises(TypeError) as exc_info:
        parallel_map(lambda x: x + 1, [1, "a"])
    snapshot = exc_info.value.error_snapshot
    path = tmp_path / "lambda.pkl"
    snapshot.save_to_file(path)
    loaded = ErrorSnapshot.load_from_file(path)
    assert loaded.function(1) == 2
    with pytest.raises(TypeError):
        loaded.reproduce()
