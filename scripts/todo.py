#!/usr/bin/env python3
"""
Todo engine: the active, done and backlog task lists and the commands that
act on them.

One invocation is a session:

    autoqueue (backlog -> active), one command, archive (active -> done)

Commands address tasks by their 1-based rank in the sorted active list.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable

from lib.todotxt.filters import build_filter
from lib.todotxt.ordering import sort_tasks
from lib.todotxt.parser import Task, parse_task
from lib.todotxt.triggers import trigger_matches
from utils import TodoConfig, format_duration, parse_duration, read_tasks, write_tasks

logger = logging.getLogger(__name__)


class TodoError(ValueError):
    """Base class for errors that abort the current invocation."""


class InvalidInput(TodoError):
    pass


class OutOfRange(TodoError):
    pass


class InvalidPriority(TodoError):
    pass


class NoActiveTimer(TodoError):
    pass


class UnknownCommand(TodoError):
    pass


class Command(Enum):
    LS = 'ls'
    ARCH = 'arch'
    STAMP = 'stamp'
    ADD = 'add'
    START = 'start'
    DEL = 'del'
    PRI = 'pri'
    DO = 'do'
    TIC = 'tic'
    TOC = 'toc'
    TIME = 'time'
    REPORT = 'report'
    DONE = 'done'
    TODAY = 'today'
    HELP = 'help'

    @classmethod
    def parse(cls, name: str) -> 'Command':
        try:
            return cls(name)
        except ValueError:
            raise UnknownCommand(f"Unknown command: {name}") from None


READ_COMMANDS = frozenset({
    Command.LS, Command.TIME, Command.REPORT, Command.DONE, Command.TODAY, Command.HELP,
})

USAGE = """\
Usage: tasks.py [--dir DIR] [--json] COMMAND [ARGS...]

  ls [FILTER]        list active tasks
  add TEXT           add a task (dated today)
  start TEXT         add a task and start its timer
  del ID             delete a task
  pri ID LETTER      set priority A-Z
  do ID...           mark tasks finished
  tic ID / toc ID    start / stop the timer on a task
  time ID            show time spent on a task
  stamp              date every undated task
  arch               move finished tasks to the done list
  done [FILTER]      list finished tasks
  today              list tasks finished today
  report [FILTER]    time spent on finished tasks, by project
  help               show this message
"""


class Backlog:
    """Ordered backlog tasks with a description index.

    ``_index`` maps each description to its position in ``_tasks`` and is
    rebuilt whenever positions shift.
    """

    def __init__(self, tasks: Iterable[Task] = ()):
        self._tasks: list[Task] = []
        self._index: dict[str, int] = {}
        for task in tasks:
            self.add(task)

    def __iter__(self):
        return iter(list(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, description: str) -> bool:
        return description in self._index

    def get(self, description: str) -> Task | None:
        pos = self._index.get(description)
        return None if pos is None else self._tasks[pos]

    def add(self, task: Task) -> None:
        """Append ``task``, replacing any entry with the same description."""
        pos = self._index.get(task.description)
        if pos is None:
            self._index[task.description] = len(self._tasks)
            self._tasks.append(task)
        else:
            self._tasks[pos] = task

    def remove(self, description: str) -> Task:
        pos = self._index[description]
        task = self._tasks.pop(pos)
        self._index = {t.description: i for i, t in enumerate(self._tasks)}
        return task

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)


def _join(args: Iterable[str]) -> str:
    return ' '.join(args).strip()


class Todo:
    def __init__(
        self,
        config: TodoConfig | None = None,
        active: list[Task] | None = None,
        done: list[Task] | None = None,
        backlog: Iterable[Task] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.active: list[Task] = list(active or [])
        self.done: list[Task] = list(done or [])
        self.backlog = Backlog(backlog or [])
        self.clock = clock
        sort_tasks(self.active)

    @classmethod
    def load(cls, config: TodoConfig, clock: Callable[[], datetime] = datetime.now) -> 'Todo':
        return cls(
            config,
            active=read_tasks(config.todo_file),
            done=read_tasks(config.done_file),
            backlog=read_tasks(config.backlog_file),
            clock=clock,
        )

    def save(self) -> None:
        if self.config is None:
            raise RuntimeError("Todo has no config to save to")
        write_tasks(self.config.todo_file, self.active)
        write_tasks(self.config.done_file, self.done)
        write_tasks(self.config.backlog_file, self.backlog.tasks)

    def today(self) -> str:
        return self.clock().date().isoformat()

    def _now(self) -> int:
        return int(self.clock().timestamp())

    def _get(self, task_id) -> Task:
        try:
            rank = int(task_id)
        except (TypeError, ValueError):
            raise OutOfRange(f"Invalid task id: {task_id!r}") from None
        if not 1 <= rank <= len(self.active):
            raise OutOfRange(f"Task id {rank} out of range (1-{len(self.active)})")
        return self.active[rank - 1]

    def _rank(self, task: Task) -> int:
        for i, t in enumerate(self.active, 1):
            if t is task:
                return i
        raise OutOfRange("Task is no longer in the active list")

    # Mutating commands

    def add(self, line: str | None) -> Task:
        if not line or not line.strip():
            raise InvalidInput("Nothing to add")
        task = parse_task(line)
        if not task.added:
            task.added = self.today()
        self.active.append(task)
        sort_tasks(self.active)
        logger.info(f"Added: {task}")
        return task

    def delete(self, task_id) -> Task:
        task = self._get(task_id)
        self.active.pop(self._rank(task) - 1)
        sort_tasks(self.active)
        logger.info(f"Deleted: {task}")
        return task

    def prioritize(self, task_id, letter: str | None) -> Task:
        task = self._get(task_id)
        if not letter or not re.fullmatch(r'[A-Z]', letter):
            raise InvalidPriority(f"Priority must be a single letter A-Z, got {letter!r}")
        task.set_priority(letter)
        sort_tasks(self.active)
        return task

    def finish(self, *task_ids) -> list[Task]:
        tasks = [self._get(task_id) for task_id in task_ids]
        for task in tasks:
            if 'tic' in task.data:
                self._stop_timer(task)
            task.finish(self.today())
            logger.info(f"Finished: {task}")
        sort_tasks(self.active)
        return tasks

    def archive(self) -> list[Task]:
        sort_tasks(self.active)
        finished = [t for t in self.active if t.done]
        if finished:
            self.active = [t for t in self.active if not t.done]
            self.done.extend(finished)
            logger.info(f"Archived {len(finished)} finished task(s)")
        return finished

    def stamp(self) -> int:
        today = self.today()
        stamped = 0
        for task in self.active:
            if not task.added:
                task.added = today
                stamped += 1
        sort_tasks(self.active)
        return stamped

    def tic(self, task_id) -> Task:
        task = self._get(task_id)
        if 'tic' not in task.data:
            task.data['tic'] = str(self._now())
            logger.debug(f"Timer started: {task.description}")
        sort_tasks(self.active)
        return task

    def toc(self, task_id) -> int:
        task = self._get(task_id)
        if 'tic' not in task.data:
            raise NoActiveTimer(f"No timer running on task {task_id}")
        total = self._stop_timer(task)
        sort_tasks(self.active)
        return total

    def _stop_timer(self, task: Task) -> int:
        elapsed = self._elapsed(task)
        total = parse_duration(task.data.get('time')) + elapsed
        del task.data['tic']
        task.data['time'] = format_duration(total)
        logger.debug(f"Timer stopped: {task.description} (+{elapsed}s)")
        return total

    def _elapsed(self, task: Task) -> int:
        if 'tic' not in task.data:
            return 0
        try:
            started = int(task.data['tic'])
        except ValueError:
            raise InvalidInput(
                f"Malformed timer start on {task.description!r}: tic:{task.data['tic']}"
            ) from None
        return max(self._now() - started, 0)

    def autoqueue(self) -> list[Task]:
        """Copy due repeating tasks and move due queued tasks into the active list."""
        today = self.clock().date()
        today_str = today.isoformat()
        active_descriptions = {t.description for t in self.active}
        finished_today = {t.description for t in self.done if t.done == today_str}
        queued = []

        for task in self.backlog:
            repeat = task.data.get('repeat')
            queue = task.data.get('queue')
            if repeat:
                if not trigger_matches(repeat, today):
                    continue
                if task.description in active_descriptions:
                    continue
                if task.done == today_str or task.description in finished_today:
                    continue
                new_task = task.copy(with_data=False)
                new_task.done = None
            elif queue:
                if not trigger_matches(queue, today):
                    continue
                if task.description in active_descriptions:
                    continue
                self.backlog.remove(task.description)
                new_task = task.copy(with_data=False)
            else:
                continue

            if not new_task.added:
                new_task.added = today_str
            self.active.append(new_task)
            active_descriptions.add(new_task.description)
            queued.append(new_task)
            logger.info(f"Queued from backlog: {new_task}")

        sort_tasks(self.active)
        return queued

    # Read-only commands

    def list_tasks(self, spec: str | None = None) -> list[tuple[int, Task]]:
        """Unfinished active tasks matching ``spec`` with their ranks.

        Finished tasks sort last and leave at archive time, so the ranks of
        the rows returned stay valid for the next invocation.
        """
        matches = build_filter(spec)
        return [(i, t) for i, t in enumerate(self.active, 1) if not t.done and matches(t)]

    def list_done(self, spec: str | None = None) -> list[Task]:
        matches = build_filter(spec)
        return sort_tasks([t for t in self.done if matches(t)])

    def finished_today(self) -> list[Task]:
        today = self.today()
        return sort_tasks([t for t in self.done + self.active if t.done == today])

    def time(self, task_id) -> int:
        task = self._get(task_id)
        if 'tic' not in task.data and 'time' not in task.data:
            raise NoActiveTimer(f"No time recorded on task {task_id}")
        return parse_duration(task.data.get('time')) + self._elapsed(task)

    def report(self, spec: str | None = None) -> dict[str | None, int]:
        """Total recorded seconds on finished tasks, grouped by project."""
        matches = build_filter(spec)
        totals: dict[str | None, int] = {}
        for task in self.done:
            if not matches(task) or 'time' not in task.data:
                continue
            seconds = parse_duration(task.data['time'])
            for project in dict.fromkeys(task.projects) or [None]:
                totals[project] = totals.get(project, 0) + seconds
        return dict(sorted(totals.items(), key=lambda item: (item[0] is None, item[0] or '')))

    # Dispatch

    def run(self, command: Command | str, *args: str):
        """Run one command; returns a payload for read commands, else None."""
        if not isinstance(command, Command):
            command = Command.parse(command)

        if command is Command.LS:
            return self.list_tasks(_join(args))
        elif command is Command.DONE:
            return self.list_done(_join(args))
        elif command is Command.TODAY:
            return self.finished_today()
        elif command is Command.TIME:
            return self.time(args[0] if args else None)
        elif command is Command.REPORT:
            return self.report(_join(args))
        elif command is Command.HELP:
            return USAGE
        elif command is Command.ARCH:
            self.archive()
        elif command is Command.STAMP:
            self.stamp()
        elif command is Command.ADD:
            self.add(_join(args))
        elif command is Command.START:
            task = self.add(_join(args))
            self.tic(self._rank(task))
        elif command is Command.DEL:
            self.delete(args[0] if args else None)
        elif command is Command.PRI:
            self.prioritize(args[0] if args else None, args[1] if len(args) > 1 else None)
        elif command is Command.DO:
            self.finish(*(args or (None,)))
        elif command is Command.TIC:
            self.tic(args[0] if args else None)
        elif command is Command.TOC:
            self.toc(args[0] if args else None)
        else:
            raise UnknownCommand(f"Unhandled command: {command.value}")
        return None

    def session(self, command: Command | str, *args: str):
        """Autoqueue, run one command, archive. The caller saves on success."""
        if not isinstance(command, Command):
            command = Command.parse(command)
        self.autoqueue()
        result = self.run(command, *args)
        self.archive()
        return result
