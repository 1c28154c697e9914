import threading
import time

import pytest

from fanout import ConcurrencyGate


def test_gate_tracks_active_and_peak():
    gate = ConcurrencyGate(2)
    gate.acquire()
    gate.acquire()
    assert gate.active == 2
    gate.release()
    assert gate.active == 1
    assert gate.peak == 2
    gate.release()
    assert repr(gate) == "ConcurrencyGate(permits=2, active=0, peak=2)"


def test_gate_blocks_until_release():
    gate = ConcurrencyGate(1)
    gate.acquire()
    acquired = threading.Event()

    def waiter():
        with gate:
            acquired.set()

    thread = threading.Thread(target=waiter)
    thread.start()
    time.sleep(0.05)
    assert not acquired.is_set()
    gate.release()
    thread.join(timeout=5)
    assert acquired.is_set()
    assert gate.peak == 1


def test_gate_bounds_threads():
    gate = ConcurrencyGate(3)

    def work():
        with gate:
            time.sleep(0.01)

    threads = [threading.Thread(target=work) for _ in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert gate.peak <= 3
    assert gate.active == 0


def test_gate_release_without_acquire_is_an_error():
    gate = ConcurrencyGate(1)
    with pytest.raises(ValueError, match="released too many times"):
        gate.release()


@pytest.mark.parametrize("permits", [0, -3, None, 2.5])
def test_gate_requires_positive_permits(permits):
    with pytest.raises(ValueError, match="`permits` must be a positive integer"):
        ConcurrencyGate(permits)
