"""
Concurrency layer for per-source extraction.

Sources are independent, so each becomes one task; a source's chunks stay
sequential inside its task so the summary keeps chunk order.

    ExecutorStrategy      interface the orchestrator depends on
    ThreadPoolStrategy    one thread per source (default)
    SequentialStrategy    inline execution for deterministic tests
    ParallelTaskRunner    submits tasks, applies the deadline, orders results
    TaskResult            success flag plus result or exception

Example:
    runner = ParallelTaskRunner(strategy=SequentialStrategy())
    results = runner.run(extract_source, [("Jira", jira_text)])
"""

from .executor_strategy import ExecutorStrategy, SequentialStrategy, ThreadPoolStrategy
from .task_runner import ParallelTaskRunner, TaskResult

__all__ = [
    'ExecutorStrategy',
    'ThreadPoolStrategy',
    'SequentialStrategy',
    'ParallelTaskRunner',
    'TaskResult',
]
