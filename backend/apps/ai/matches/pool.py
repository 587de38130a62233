"""
Bounded thread pool for running independent matches.

A match that raises is logged and dropped; the rest of the batch
still completes. Results come back in submission order.
"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

J = TypeVar('J')
R = TypeVar('R')


def default_workers() -> int:
    return os.cpu_count() or 1


class MatchPool(Generic[J, R]):
    """
    Run a function over a batch of jobs on a thread pool.

    Example:
        pool = MatchPool(play_job, max_workers=4)
        results, failures = pool.run(jobs)
        for job, result in results:
            ...
    """

    def __init__(self, fn: Callable[[J], R], max_workers: Optional[int] = None):
        self.fn = fn
        self.max_workers = min(max_workers or default_workers(), default_workers())

    def run(self, jobs: Sequence[J]) -> Tuple[List[Tuple[J, R]], int]:
        """
        Run every job and wait for all of them.

        Returns:
            Tuple of ((job, result) pairs for successful jobs in job
            order, number of failed jobs).
        """
        if not jobs:
            return [], 0

        outcomes: List[Optional[R]] = [None] * len(jobs)
        succeeded = [False] * len(jobs)

        if self.max_workers <= 1 or len(jobs) == 1:
            for i, job in enumerate(jobs):
                try:
                    outcomes[i] = self.fn(job)
                    succeeded[i] = True
                except Exception:
                    logger.exception("Match %r failed; dropping its samples", job)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {executor.submit(self.fn, job): i for i, job in enumerate(jobs)}
                for future in as_completed(futures):
                    i = futures[future]
                    try:
                        outcomes[i] = future.result()
                        succeeded[i] = True
                    except Exception:
                        logger.exception("Match %r failed; dropping its samples", jobs[i])

        results = [(job, outcomes[i]) for i, job in enumerate(jobs) if succeeded[i]]
        return results, len(jobs) - len(results)
