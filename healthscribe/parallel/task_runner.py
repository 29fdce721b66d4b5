"""
Runs one task per data source and collects the outcomes.

    runner = ParallelTaskRunner(ThreadPoolStrategy(max_workers=2), on_task_complete=report)
    results = runner.run(extract, [("Jira", jira), ("Confluence", wiki)], timeout=120)

Each TaskResult says whether its source succeeded. A failing source does
not stop the others; the caller decides what a failure means.
"""

import threading
from concurrent.futures import Future, TimeoutError as FuturesTimeoutError, as_completed
from dataclasses import dataclass
from typing import Any, Callable

from .executor_strategy import ExecutorStrategy


@dataclass
class TaskResult:
    """
    Outcome of one task.

    Attributes:
        task_id: Identifier supplied with the item (the source label)
        success: False if the task raised
        result: Return value when success is True
        error: The raised exception when success is False
    """
    task_id: str
    success: bool
    result: Any = None
    error: Exception | None = None


class ParallelTaskRunner:
    """
    Submits (task_id, payload) items to a strategy and waits for them.

    Args:
        strategy: Where the tasks run
        on_task_complete: Called as (task_id, result) after each success,
            in completion order
    """

    def __init__(
        self,
        strategy: ExecutorStrategy,
        on_task_complete: Callable[[str, Any], None] | None = None,
    ):
        self.strategy = strategy
        self.on_task_complete = on_task_complete
        self._cancelled = threading.Event()
        self._futures: list[Future] = []

    def run(
        self,
        fn: Callable[[Any], Any],
        items: list[tuple[str, Any]],
        timeout: float | None = None,
    ) -> list[TaskResult]:
        """
        Run fn(payload) for every item.

        Args:
            fn: Task body, called with the item's payload
            items: (task_id, payload) pairs; task ids must be unique
            timeout: Overall seconds to wait; None waits as long as it takes

        Returns:
            One TaskResult per submitted item, in item order

        Raises:
            concurrent.futures.TimeoutError: The timeout passed with tasks
                still running. This run's unstarted tasks are cancelled and
                its running ones are abandoned; the strategy stays usable.
        """
        submitted: dict[Future, str] = {}
        for task_id, payload in items:
            if self._cancelled.is_set():
                break
            future = self.strategy.submit(fn, payload)
            self._futures.append(future)
            submitted[future] = task_id

        outcomes: dict[str, TaskResult] = {}
        try:
            for future in as_completed(submitted, timeout=timeout):
                if self._cancelled.is_set():
                    break
                task_id = submitted[future]
                exc = future.exception()
                if exc is not None:
                    outcomes[task_id] = TaskResult(task_id=task_id, success=False, error=exc)
                    continue
                outcomes[task_id] = TaskResult(task_id=task_id, success=True, result=future.result())
                if self.on_task_complete:
                    self.on_task_complete(task_id, outcomes[task_id].result)
        except FuturesTimeoutError:
            self.cancel()
            raise

        return [outcomes[task_id] for task_id in submitted.values() if task_id in outcomes]

    def cancel(self):
        """
        Stop submitting and drop this runner's queued tasks.

        Running tasks cannot be interrupted and finish in the background.
        The strategy is left open for other work.
        """
        self._cancelled.set()
        for future in self._futures:
            future.cancel()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()
