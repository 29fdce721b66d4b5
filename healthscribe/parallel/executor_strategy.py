"""
Execution strategies for per-source work.

The orchestrator decides WHAT runs concurrently (one task per data source);
a strategy decides HOW. Tests inject SequentialStrategy to get a fixed
execution order with no threads.

    strategy = ThreadPoolStrategy(max_workers=2)   # production
    strategy = SequentialStrategy()                # tests
    future = strategy.submit(extract_source, source)
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, TypeVar

from ..config import PARALLEL_MAX_WORKERS

T = TypeVar('T')
R = TypeVar('R')


class ExecutorStrategy(ABC):
    """Common interface for running single-argument callables."""

    max_workers: int

    @abstractmethod
    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        """Schedule fn(item) and return its Future."""

    @abstractmethod
    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Release workers.

        Args:
            wait: Block until running calls return
            cancel_futures: Drop calls that have not started yet
        """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)
        return False


class ThreadPoolStrategy(ExecutorStrategy):
    """
    Runs tasks on a ThreadPoolExecutor.

    Oracle calls spend their time waiting on HTTP, so threads overlap
    sources well despite the GIL.
    """

    def __init__(self, max_workers: int | None = None):
        """
        Args:
            max_workers: Thread count; PARALLEL_MAX_WORKERS when None
        """
        self.max_workers = max_workers if max_workers is not None else PARALLEL_MAX_WORKERS
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="healthscribe"
        )

    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        return self._executor.submit(fn, item)

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)


class SequentialStrategy(ExecutorStrategy):
    """
    Runs each task inline at submit time.

    submit() hands back an already-resolved Future. A raised exception is
    stored on the Future rather than propagated, the same as with a pool.
    """

    def __init__(self):
        self.max_workers = 1

    def submit(self, fn: Callable[[T], R], item: T) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(item))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """Nothing to release."""
