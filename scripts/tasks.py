#!/usr/bin/env python3
"""
todo.txt Tracker CLI.

Usage:
    tasks.py ls [FILTER]
    tasks.py add "(A) Bake cookies +baking @home"
    tasks.py do 1
    tasks.py pri 2 B
    tasks.py tic 1 / tasks.py toc 1
    tasks.py --json report +baking

Every run autoqueues due backlog tasks, applies the command, archives
finished tasks and saves the three lists. Nothing is saved if the command
fails.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
from lib.todotxt.parser import Task, format_task
from todo import Command, READ_COMMANDS, Todo, TodoError
from utils import format_duration, get_config

logger = logging.getLogger(__name__)


def _task_json(task: Task, rank: int | None = None) -> dict:
    payload = {
        'line': format_task(task),
        'done': task.done,
        'priority': task.priority,
        'added': task.added,
        'description': task.description,
        'projects': task.projects,
        'contexts': task.contexts,
        'data': task.data,
    }
    if rank is not None:
        payload = {'id': rank, **payload}
    return payload


def print_tasks(rows: list, label: str) -> None:
    """Print ``(rank, task)`` rows or bare tasks with a count footer."""
    for i, row in enumerate(rows, 1):
        rank, task = row if isinstance(row, tuple) else (i, row)
        print(f"{rank:2d} {format_task(task)}")
    print(f"--\n{len(rows)} {label}")


def print_result(command: Command, result, as_json: bool) -> None:
    if command is Command.HELP:
        print(result, end='')
        return

    if as_json:
        if command is Command.LS:
            payload = [_task_json(task, rank) for rank, task in result]
        elif command in (Command.DONE, Command.TODAY):
            payload = [_task_json(task) for task in result]
        elif command is Command.TIME:
            payload = {'seconds': result, 'time': format_duration(result)}
        else:
            payload = [
                {'project': project, 'seconds': seconds, 'time': format_duration(seconds)}
                for project, seconds in result.items()
            ]
        print(json.dumps(payload, indent=2))
        return

    if command is Command.LS:
        print_tasks(result, 'active task(s)')
    elif command in (Command.DONE, Command.TODAY):
        print_tasks(result, 'finished task(s)')
    elif command is Command.TIME:
        print(format_duration(result))
    elif command is Command.REPORT:
        if not result:
            print("No recorded time.")
            return
        for project, seconds in result.items():
            name = f"+{project}" if project else "(no project)"
            print(f"{format_duration(seconds):>10}  {name}")
        print(f"{format_duration(sum(result.values())):>10}  total")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='todo.txt Tracker CLI')
    parser.add_argument('--dir', help='Directory holding todo.txt, done.txt and backlog.txt')
    parser.add_argument('--json', action='store_true', help='Print read command output as JSON')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug output')
    parser.add_argument('command', nargs='?', default='ls', help='Command name (see "help")')
    parser.add_argument('args', nargs=argparse.REMAINDER, help='Command arguments')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        command = Command.parse(args.command)
        if command is Command.HELP:
            print_result(command, Todo().run(command), args.json)
            return 0

        config = get_config(args.dir)
        logger.debug(f"Task lists: {config.todo_file}, {config.done_file}, {config.backlog_file}")
        todo = Todo.load(config)
        result = todo.session(command, *args.args)
        todo.save()
    except TodoError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if command in READ_COMMANDS:
        print_result(command, result, args.json)
    else:
        print(f"✅ {command.value}: {len(todo.active)} active, {len(todo.done)} done")
    return 0


if __name__ == '__main__':
    sys.exit(main())
