import pytest

from fanout import Chunk, chunk_bounds


def test_even_split():
    assert chunk_bounds(4, 2) == [Chunk(0, 2), Chunk(2, 4)]


def test_last_chunk_absorbs_remainder():
    assert chunk_bounds(7, 2) == [Chunk(0, 3), Chunk(3, 7)]
    assert chunk_bounds(10, 4) == [Chunk(0, 2), Chunk(2, 4), Chunk(4, 6), Chunk(6, 10)]


def test_more_workers_than_items():
    assert chunk_bounds(3, 8) == [Chunk(0, 1), Chunk(1, 2), Chunk(2, 3)]


def test_empty():
    assert chunk_bounds(0, 4) == []


def test_single_worker():
    assert chunk_bounds(5, 1) == [Chunk(0, 5)]


@pytest.mark.parametrize("parallelism", range(1, 10))
def test_chunks_partition_the_range(parallelism):
    for total in range(40):
        chunks = chunk_bounds(total, parallelism)
        assert len(chunks) == min(parallelism, total)
        covered = [i for chunk in chunks for i in range(chunk.lo, chunk.hi)]
        assert covered == list(range(total))
        assert all(chunk.size >= 1 for chunk in chunks)


def test_chunk_take():
    assert Chunk(1, 3).take("abcd") == ["b", "c"]
    assert Chunk(1, 3).size == 2


def test_invalid_arguments():
    with pytest.raises(ValueError, match="parallelism"):
        chunk_bounds(5, 0)
    with pytest.raises(ValueError, match="total"):
        chunk_bounds(-1, 2)
