"""Task filters built from partial todo.txt lines.

A filter spec is written like a task line, e.g. ``"x 2012-08-15"``,
``"(A) +baking"`` or ``"cookies @home"``.
"""

from __future__ import annotations

from typing import Callable, Iterable

from .parser import Task, parse_task


def _match_all(task: Task) -> bool:
    return True


def build_filter(spec: str | None) -> Callable[[Task], bool]:
    """Build a predicate matching tasks against a partial task line.

    Fields set in the pattern must be equal, the pattern description must be
    a substring of the task description, and the pattern's projects and
    contexts must all be present on the task. Metadata is ignored.
    """
    if not spec or not spec.strip():
        return _match_all

    pattern = parse_task(spec)
    projects = set(pattern.projects)
    contexts = set(pattern.contexts)

    def _matches(task: Task) -> bool:
        if pattern.done and task.done != pattern.done:
            return False
        if pattern.priority and task.priority != pattern.priority:
            return False
        if pattern.added and task.added != pattern.added:
            return False
        if pattern.description and pattern.description not in task.description:
            return False
        if not projects.issubset(task.projects):
            return False
        return contexts.issubset(task.contexts)

    return _matches


def filter_tasks(tasks: Iterable[Task], spec: str | None) -> list[Task]:
    matches = build_filter(spec)
    return [task for task in tasks if matches(task)]
