# Bounded thread pool for row-partitioned work.
# numpy kernels drop the GIL, so threads give real parallelism on the hot loops.

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Sequence


def resolve_workers(n_items: int, max_workers: int | None = None) -> int:
    """Hardware parallelism by default, never more workers than items, never fewer than one."""
    if max_workers is None:
        max_workers = os.cpu_count() or 1
    return max(1, min(int(max_workers), int(n_items)))


def row_chunks(n_rows: int, n_chunks: int) -> list[tuple[int, int]]:
    """Split range(n_rows) into contiguous, non-overlapping [start, stop) ranges.

    The first n_rows % n_chunks chunks get one extra row, so no chunk is empty
    as long as n_rows > 0.
    """
    n_chunks = max(1, min(n_chunks, n_rows))
    base, extra = divmod(n_rows, n_chunks)
    out = []
    start = 0
    for i in range(n_chunks):
        stop = start + base + (1 if i < extra else 0)
        out.append((start, stop))
        start = stop
    return out


def run_chunks(
    fn: Callable[[int, int], Any],
    chunks: Sequence[tuple[int, int]],
    pool: ThreadPoolExecutor | None = None,
) -> list[Any]:
    """Run fn(start, stop) for every chunk and return results in chunk order.

    Returning means every worker has finished (the barrier). A worker's
    exception is re-raised here.
    """
    if pool is None or len(chunks) == 1:
        return [fn(start, stop) for start, stop in chunks]

    futures = [pool.submit(fn, start, stop) for start, stop in chunks]
    return [f.result() for f in futures]


def run_tasks(tasks: Sequence[Callable[[], Any]], workers: int | None = None) -> list[Any]:
    """Run independent zero-arg tasks with up to `workers` threads, results in task order."""
    n = resolve_workers(len(tasks), workers)
    if n == 1:
        return [task() for task in tasks]

    with ThreadPoolExecutor(max_workers=n) as pool:
        futures = [pool.submit(task) for task in tasks]
        return [f.result() for f in futures]
