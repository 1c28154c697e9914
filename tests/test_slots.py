import numpy as np
import pytest

from fanout._slots import FlagSlots, ResultSlots
from fanout.exceptions import SlotAlreadySetError, SlotNotSetError


def test_result_slots_write_once_and_read_back():
    slots = ResultSlots(3)
    slots[2] = "c"
    slots[0] = "a"
    assert slots.n_set == 2
    assert slots.missing == [1]
    slots[1] = "b"
    assert slots.to_list() == ["a", "b", "c"]
    assert len(slots) == 3


def test_result_slots_reject_second_write():
    slots = ResultSlots(2)
    slots[0] = 1
    with pytest.raises(SlotAlreadySetError, match="Slot 0 was already written"):
        slots[0] = 2
    assert slots[0] == 1


def test_result_slots_unset_reads_fail():
    slots = ResultSlots(2)
    slots[1] = "x"
    with pytest.raises(SlotNotSetError, match="Slot 0"):
        slots[0]
    with pytest.raises(SlotNotSetError, match=r"\[0\]"):
        slots.to_list()


def test_result_slots_store_containers_as_objects():
    slots = ResultSlots(3)
    slots[0] = [1, 2]
    slots[1] = (3, 4)
    slots[2] = np.arange(3)
    out = slots.to_list()
    assert out[0] == [1, 2]
    assert out[1] == (3, 4)
    assert isinstance(out[2], np.ndarray)


def test_result_slots_can_hold_none():
    slots = ResultSlots(2)
    slots[0] = None
    slots[1] = 0
    assert slots.to_list() == [None, 0]


def test_result_slots_compact():
    slots = ResultSlots(5)
    slots[0] = "a"
    slots[1] = None
    slots[3] = 0
    slots[4] = "e"
    assert slots.compact() == ["a", 0, "e"]


def test_empty_result_slots():
    assert ResultSlots(0).to_list() == []
    assert ResultSlots(0).compact() == []


def test_flag_slots_select_preserves_order():
    flags = FlagSlots(5)
    flags[4] = True
    flags[0] = 1
    flags[2] = "yes"
    flags[3] = 0
    assert flags[2] is True
    assert flags[3] is False
    assert flags.select("abcde") == ["a", "c", "e"]
    assert len(flags) == 5


def test_flag_slots_select_rejects_length_mismatch():
    flags = FlagSlots(3)
    with pytest.raises(ValueError, match="Expected 3 items to select from, got 2"):
        flags.select("ab")
