"""Task ordering.

1. Unfinished comes before completed.
2. Completed tasks by completion date, most recent first.
3. Unfinished tasks by priority, unprioritized last.
4. Within priority by date added, oldest first, undated last.
5. Then by original position (``Task.number``).
"""

from __future__ import annotations

from functools import cmp_to_key

from .parser import Task


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _cmp_present_first(a, b) -> int:
    """Order two optional values: set before unset, then ascending."""
    if a and b:
        return _cmp(a, b)
    if a:
        return -1
    if b:
        return 1
    return 0


def compare_tasks(t1: Task, t2: Task) -> int:
    if t1.done != t2.done:
        if t1.done and t2.done:
            return _cmp(t2.done, t1.done)
        return 1 if t1.done else -1
    if t1.priority != t2.priority:
        return _cmp_present_first(t1.priority, t2.priority)
    if t1.added != t2.added:
        return _cmp_present_first(t1.added, t2.added)
    return _cmp(t1.number or 0, t2.number or 0)


def number_tasks(tasks: list[Task]) -> None:
    """Give every unnumbered task a number past the highest one in use."""
    next_number = max((t.number for t in tasks if t.number is not None), default=0)
    for task in tasks:
        if task.number is None:
            next_number += 1
            task.number = next_number


def sort_tasks(tasks: list[Task]) -> list[Task]:
    """Number, then sort ``tasks`` in place. Returns the same list."""
    number_tasks(tasks)
    tasks.sort(key=cmp_to_key(compare_tasks))
    return tasks
