"""
Fork-join helpers for the per-odor loops.

NumPy releases the GIL inside its array kernels, so a thread pool gives
real overlap for the layer integrators while sharing RunVars in memory.

  parallel_for : independent tasks, results stored under a lock
  run_team     : a fixed team of threads sharing one Barrier, for loops
                 whose iterations need a leader step between phases
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)


def worker_count(n_workers=None, n_tasks=None):
    """Resolve the thread count: explicit value, else every CPU."""
    n = n_workers or os.cpu_count() or 1
    if n_tasks is not None:
        n = min(n, max(n_tasks, 1))
    return max(int(n), 1)


def parallel_for(fn, indices, n_workers=None, store=None):
    """Run fn(i) for every i in indices on a thread pool.

    Parameters
    ----------
    fn : callable
        Task body; must only write to its own scratch data.
    indices : iterable of int
    n_workers : int, optional
    store : callable, optional
        store(i, result) is called under a shared lock as each task
        finishes; use it to write into shared containers.

    Returns
    -------
    results : list
        fn(i) in the order of indices.
    """
    indices = list(indices)
    lock = threading.Lock()

    def task(i):
        result = fn(i)
        if store is not None:
            with lock:
                store(i, result)
        return result

    n = worker_count(n_workers, len(indices))
    if n == 1:
        return [task(i) for i in indices]
    with ThreadPoolExecutor(max_workers=n) as pool:
        return list(pool.map(task, indices))


def run_team(fn, n_workers=None):
    """Run fn(worker_id, barrier) on n threads sharing one Barrier.

    If any worker raises, the barrier is aborted so the others stop
    waiting, and the first error is re-raised in the caller.
    """
    n = worker_count(n_workers)
    barrier = threading.Barrier(n)
    errors = []

    def body(worker_id):
        try:
            fn(worker_id, barrier)
        except threading.BrokenBarrierError:
            pass
        except Exception as e:
            errors.append(e)
            barrier.abort()

    threads = [threading.Thread(target=body, args=(i,),
                                name=f"olfsim-worker-{i}")
               for i in range(n)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    if errors:
        raise errors[0]
    if barrier.broken:
        raise RuntimeError("worker team aborted without an error")
