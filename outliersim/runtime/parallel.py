"""
outliersim.runtime.parallel
===========================

Order-preserving map over replicate-indexed jobs.

Replicates are independent given their own random stream, so both
generation and testing can be partitioned by replicate id. `ordered_map`
runs a top-level function over a list of jobs and returns results in job
order, sequentially by default or on a thread / spawn-process pool. Callers
merge the per-job results; nothing is shared between jobs.

Examples
--------
>>> from outliersim.runtime.parallel import ordered_map
>>> ordered_map(abs, [-3, 1, -2], workers=2, backend="thread")
[3, 1, 2]
"""

from __future__ import annotations
import logging
from multiprocessing import get_context
from multiprocessing.pool import ThreadPool
from typing import Callable, List, Sequence, TypeVar, Union

from outliersim.core.errors import InvalidArgument
from outliersim.core.names import ParallelBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def ordered_map(
    func: Callable[[T], R],
    jobs: Sequence[T],
    *,
    workers: int = 1,
    backend: Union[ParallelBackend, str] = ParallelBackend.THREAD,
    chunksize: int = 1,
) -> List[R]:
    """Apply `func` to every job and return the results in job order.

    With `backend="process"`, `func` and every job must be picklable
    (module-level functions, plain data).
    """
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise InvalidArgument(f"workers must be a positive integer, got {workers!r}")
    try:
        backend = ParallelBackend(backend)
    except ValueError:
        raise InvalidArgument(f"Unknown parallel backend: {backend!r}") from None

    if workers == 1 or len(jobs) <= 1:
        return [func(job) for job in jobs]

    n = min(workers, len(jobs))
    logger.debug("mapping %d jobs on %d %s workers", len(jobs), n, backend.value)
    if backend is ParallelBackend.THREAD:
        with ThreadPool(processes=n) as pool:
            return pool.map(func, jobs, chunksize=chunksize)
    with get_context("spawn").Pool(processes=n) as pool:
        return pool.map(func, jobs, chunksize=chunksize)
