"""todo.txt line parser and formatter.

An active task line looks like

    (A) 2012-08-13 Some task here @context +project key:value

and a finished one like

    x 2012-08-14 2012-08-13 Some task here @context +project
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


DATE_RE = r'\d{4}-\d{2}-\d{2}'

_DONE_RE = re.compile(rf'^x\s+({DATE_RE})(?:\s+|$)')
_PRIORITY_RE = re.compile(r'^\(([A-Z])\)(?:\s+|$)')
_ADDED_RE = re.compile(rf'^({DATE_RE})(?:\s+|$)')
# Trailing tokens are removed together with the whitespace in front of them
_PROJECT_RE = re.compile(r'(?:^|\s+)\+(\S+)')
_CONTEXT_RE = re.compile(r'(?:^|\s+)@(\S+)')
_DATA_RE = re.compile(r'(?:^|\s+)([\w-]+):(\S+)')


@dataclass
class Task:
    description: str = ''
    done: str | None = None
    priority: str | None = None
    added: str | None = None
    projects: list[str] = field(default_factory=list)
    contexts: list[str] = field(default_factory=list)
    data: dict[str, str] = field(default_factory=dict)
    number: int | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return format_task(self)

    def finish(self, day: str) -> None:
        """Mark finished on ``day`` unless already finished; drops priority."""
        if not self.done:
            self.done = day
        self.priority = None

    def set_priority(self, letter: str) -> None:
        self.priority = letter
        self.done = None

    def copy(self, with_data: bool = True) -> 'Task':
        return Task(
            description=self.description,
            done=self.done,
            priority=self.priority,
            added=self.added,
            projects=list(self.projects),
            contexts=list(self.contexts),
            data=dict(self.data) if with_data else {},
        )


def parse_task(line: str) -> Task:
    """Parse one todo.txt line into a Task.

    Leading markers (completion, priority, creation date) are anchored to the
    start of the line and consumed first; projects, contexts and key:value
    pairs may then appear anywhere in the remaining text.
    """
    task = Task()
    rest = line.strip()

    match = _DONE_RE.match(rest)
    if match:
        task.done = match.group(1)
        rest = rest[match.end():]
    else:
        match = _PRIORITY_RE.match(rest)
        if match:
            task.priority = match.group(1)
            rest = rest[match.end():]

    match = _ADDED_RE.match(rest)
    if match:
        task.added = match.group(1)
        rest = rest[match.end():]

    def _project(m):
        task.projects.append(m.group(1))
        return ''

    def _context(m):
        task.contexts.append(m.group(1))
        return ''

    def _data(m):
        task.data[m.group(1)] = m.group(2)
        return ''

    rest = _PROJECT_RE.sub(_project, rest)
    rest = _CONTEXT_RE.sub(_context, rest)
    rest = _DATA_RE.sub(_data, rest)

    task.description = rest.strip()
    return task


def _description_reads_as_marker(task: Task) -> bool:
    """True if the description would be taken for a leading marker on re-parse."""
    if task.added or not task.description:
        return False
    if _ADDED_RE.match(task.description):
        return True
    if task.done or task.priority:
        return False
    return bool(_DONE_RE.match(task.description) or _PRIORITY_RE.match(task.description))


def format_task(task: Task) -> str:
    """Render a Task as a single todo.txt line.

    Metadata is written sorted by key so output is reproducible. A
    description that starts like a date, ``(A)`` or ``x DATE`` is written
    behind its first token so it still parses back as description.
    """
    data = [f'{key}:{value}' for key, value in sorted(task.data.items())]
    projects = [f'+{project}' for project in task.projects]
    contexts = [f'@{context}' for context in task.contexts]

    parts = []
    if task.done:
        parts.append(f'x {task.done}')
    elif task.priority:
        parts.append(f'({task.priority})')
    if task.added:
        parts.append(task.added)
    if _description_reads_as_marker(task):
        for tokens in (projects, contexts, data):
            if tokens:
                parts.append(tokens.pop(0))
                break
    if task.description:
        parts.append(task.description)
    parts.extend(data)
    parts.extend(projects)
    parts.extend(contexts)
    return ' '.join(parts)
