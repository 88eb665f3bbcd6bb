"""Tests for the tasks.py command line."""

import json
import os
import subprocess
import sys
from datetime import date
from pathlib import Path

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "tasks.py"


def _run(args, env):
    return subprocess.run(
        [sys.executable, str(SCRIPT), *args],
        text=True,
        capture_output=True,
        env=env,
        check=False,
    )


def _env(tmp_path):
    env = os.environ.copy()
    env["TODO_DIR"] = str(tmp_path)
    for var in ("TODO_FILE", "DONE_FILE", "BACKLOG_FILE"):
        env.pop(var, None)
    return env


def test_add_list_do_archive(tmp_path):
    env = _env(tmp_path)
    today = date.today().isoformat()

    r = _run(["add", "(A) Bake cookies +baking @home"], env)
    assert r.returncode == 0, r.stderr
    r = _run(["add", "Buy", "milk"], env)
    assert r.returncode == 0, r.stderr

    r = _run(["ls"], env)
    assert r.returncode == 0
    assert f" 1 (A) {today} Bake cookies +baking @home" in r.stdout
    assert f" 2 {today} Buy milk" in r.stdout
    assert "2 active task(s)" in r.stdout

    r = _run(["do", "1"], env)
    assert r.returncode == 0
    assert (tmp_path / "todo.txt").read_text() == f"{today} Buy milk\n"
    assert (tmp_path / "done.txt").read_text() == f"x {today} {today} Bake cookies +baking @home\n"

    r = _run(["today"], env)
    assert "Bake cookies" in r.stdout


def test_json_listing(tmp_path):
    env = _env(tmp_path)
    (tmp_path / "todo.txt").write_text("(B) beta +p\n(A) alpha\n")

    r = _run(["--json", "ls", "+p"], env)
    assert r.returncode == 0
    payload = json.loads(r.stdout)
    assert payload == [{
        "id": 2,
        "line": "(B) beta +p",
        "done": None,
        "priority": "B",
        "added": None,
        "description": "beta",
        "projects": ["p"],
        "contexts": [],
        "data": {},
    }]


def test_error_exits_without_saving(tmp_path):
    env = _env(tmp_path)
    (tmp_path / "todo.txt").write_text("task1\ntask2\n")
    (tmp_path / "backlog.txt").write_text("Daily review repeat:weekdays\nWeekend review repeat:weekends\n")

    r = _run(["del", "5"], env)
    assert r.returncode == 1
    assert "❌" in r.stderr
    assert (tmp_path / "todo.txt").read_text() == "task1\ntask2\n"

    r = _run(["pri", "1", "lowercase"], env)
    assert r.returncode == 1

    r = _run(["toc", "1"], env)
    assert r.returncode == 1

    r = _run(["bogus"], env)
    assert r.returncode == 1
    assert "Unknown command" in r.stderr
    assert (tmp_path / "todo.txt").read_text() == "task1\ntask2\n"


def test_report_json(tmp_path):
    env = _env(tmp_path)
    (tmp_path / "done.txt").write_text(
        "x 2012-08-10 a +alpha time:0.10.00\n"
        "x 2012-08-11 b time:0.00.30\n"
    )
    r = _run(["--json", "report"], env)
    assert r.returncode == 0
    assert json.loads(r.stdout) == [
        {"project": "alpha", "seconds": 600, "time": "0.10.00"},
        {"project": None, "seconds": 30, "time": "0.00.30"},
    ]

    r = _run(["report"], env)
    assert "+alpha" in r.stdout
    assert "0.10.30  total" in r.stdout


def test_help_does_not_touch_files(tmp_path):
    env = _env(tmp_path)
    r = _run(["help"], env)
    assert r.returncode == 0
    assert "Usage" in r.stdout
    assert list(tmp_path.iterdir()) == []


def test_dir_option_overrides_env(tmp_path):
    env = _env(tmp_path / "unused")
    target = tmp_path / "lists"
    r = _run(["--dir", str(target), "add", "Elsewhere"], env)
    assert r.returncode == 0
    assert "Elsewhere" in (target / "todo.txt").read_text()
    assert (target / "done.txt").read_text() == ""
    assert (target / "backlog.txt").read_text() == ""
