"""fanout: bounded-concurrency parallel map, filter, for-each and reduce over sequences."""

from fanout import exceptions
from fanout._async import async_enumerated, async_filter, async_for_each, async_map
from fanout._batch import batch_map, batched, process_batches
from fanout._gate import ConcurrencyGate
from fanout._outcome import Outcome
from fanout._parallel import (
    parallel_compact_map,
    parallel_enumerated,
    parallel_filter,
    parallel_for_each,
    parallel_map,
)
from fanout._partition import Chunk, chunk_bounds
from fanout._reduce import parallel_reduce
from fanout._task_scope import TaskScope
from fanout._version import __version__

__all__ = [
    "Chunk",
    "ConcurrencyGate",
    "Outcome",
    "TaskScope",
    "__version__",
    "async_enumerated",
    "async_filter",
    "async_for_each",
    "async_map",
    "batch_map",
    "batched",
    "chunk_bounds",
    "exceptions",
    "parallel_compact_map",
    "parallel_enumerated",
    "parallel_filter",
    "parallel_for_each",
    "parallel_map",
    "parallel_reduce",
    "process_batches",
]
