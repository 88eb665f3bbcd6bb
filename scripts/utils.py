#!/usr/bin/env python3
"""
Shared utilities for the todo.txt tracker scripts.

Configuration via environment variables:
- TODO_DIR: Directory holding the task lists (default ~/todo)
- TODO_FILE: Path to the active task list (default $TODO_DIR/todo.txt)
- DONE_FILE: Path to the archive of finished tasks (default $TODO_DIR/done.txt)
- BACKLOG_FILE: Path to the backlog / project list (default $TODO_DIR/backlog.txt)
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from lib.todotxt.parser import Task, format_task, parse_task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TodoConfig:
    todo_file: Path
    done_file: Path
    backlog_file: Path


def get_config(todo_dir: str | Path | None = None) -> TodoConfig:
    """Build the task list paths from an explicit directory or the environment."""
    base = Path(todo_dir or os.getenv('TODO_DIR', Path.home() / 'todo')).expanduser()
    return TodoConfig(
        todo_file=Path(os.getenv('TODO_FILE', base / 'todo.txt')).expanduser(),
        done_file=Path(os.getenv('DONE_FILE', base / 'done.txt')).expanduser(),
        backlog_file=Path(os.getenv('BACKLOG_FILE', base / 'backlog.txt')).expanduser(),
    )


def parse_tasks(content: str) -> list[Task]:
    """Parse file content into tasks, skipping blank lines and # comments.

    Tasks are numbered by their position in the file.
    """
    tasks = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        task = parse_task(stripped)
        task.number = len(tasks) + 1
        tasks.append(task)
    return tasks


def read_tasks(path: Path) -> list[Task]:
    """Read a task list. A missing file is an empty list."""
    if not path.exists():
        logger.debug(f"Task file not found, starting empty: {path}")
        return []
    tasks = parse_tasks(path.read_text(encoding='utf-8'))
    logger.debug(f"Read {len(tasks)} tasks from {path}")
    return tasks


def _atomic_write(path: Path, content: str) -> None:
    """Write content atomically via tempfile + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


def write_tasks(path: Path, tasks: list[Task]) -> None:
    """Replace the contents of ``path`` with one line per task."""
    content = ''.join(f"{format_task(task)}\n" for task in tasks)
    _atomic_write(path, content)
    logger.debug(f"Wrote {len(tasks)} tasks to {path}")


def parse_duration(duration_str: str | None) -> int:
    """Parse an accumulated time value into seconds.

    Accepts ``H.MM.SS`` (e.g. '1.02.03'), ``MM.SS`` or plain seconds ('3723').
    Unparseable values count as zero.
    """
    if not duration_str:
        return 0

    duration_str = duration_str.strip()
    if not re.fullmatch(r'\d+(\.\d+){0,2}', duration_str):
        logger.warning(f"Ignoring unparseable duration: {duration_str!r}")
        return 0

    total = 0
    for part in duration_str.split('.'):
        total = total * 60 + int(part)
    return total


def format_duration(seconds: int) -> str:
    """Format seconds as ``H.MM.SS`` (e.g. 3723 -> '1.02.03')."""
    seconds = max(int(seconds), 0)
    h, rest = divmod(seconds, 3600)
    m, s = divmod(rest, 60)
    return f"{h}.{m:02d}.{s:02d}"
