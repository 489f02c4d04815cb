from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
SCRIPT_PATH = REPO_ROOT / "scripts" / "init_schema.py"


def _run_script(*args: str) -> str:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT / "api"), env.get("PYTHONPATH")]))
    completed = subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        check=True,
        capture_output=True,
        text=True,
        env=env,
    )
    return completed.stdout


def test_init_schema_emits_tables_with_cascading_attachments() -> None:
    output = _run_script()

    assert "create table if not exists jobs" in output
    assert "create table if not exists job_attachments" in output
    assert "references jobs (id) on delete cascade" in output
    assert "drop table" not in output


def test_init_schema_can_drop_existing_tables_first() -> None:
    output = _run_script("--drop-existing")

    assert output.index("drop table if exists job_attachments") < output.index("create table if not exists jobs")
