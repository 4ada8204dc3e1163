"""
Task Group - Run a batch of named tasks in parallel and wait for all of them.
"""

import concurrent.futures
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class TaskOutcome:
    name: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_task_group(tasks: Sequence[Tuple[str, Callable[[], Any]]]) -> List[TaskOutcome]:
    """
    Run every task on its own worker thread and join them all.

    A failing task never cancels or hides the others; its exception is
    returned in its outcome.

    Args:
        tasks: (name, callable) pairs

    Returns:
        One outcome per task, in the order the tasks were given
    """
    if not tasks:
        return []

    with concurrent.futures.ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="scrape") as executor:
        futures = [(name, executor.submit(task)) for name, task in tasks]

        outcomes = []
        for name, future in futures:
            error = future.exception()
            outcomes.append(TaskOutcome(name=name, error=error))
        return outcomes
