from __future__ import annotations

import ast
import os
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
EXAMPLES_ROOT = REPO_ROOT / "examples"
SRC_ROOT = REPO_ROOT / "src"
EXPECTED_MARKER = "# =>"

TOPIC_DIRS = sorted(path for path in EXAMPLES_ROOT.glob("ex_*") if path.is_dir())
EXAMPLE_PATHS = sorted(EXAMPLES_ROOT.glob("ex_*/01_*.py"))


def _expected_lines(path: Path) -> list[str]:
    expected: list[str] = []
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if "print(" not in line:
            continue
        assert EXPECTED_MARKER in line, f"{path.name}:{lineno}: print() without '{EXPECTED_MARKER}'"
        expected.append(line.split(EXPECTED_MARKER, maxsplit=1)[1].strip())
    return expected


def _proxywire_imports(path: Path) -> list[str]:
    module = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    return [
        node.module
        for node in ast.walk(module)
        if isinstance(node, ast.ImportFrom)
        and node.module is not None
        and node.module.split(".")[0] == "proxywire"
    ]


@pytest.mark.parametrize("topic_dir", TOPIC_DIRS, ids=lambda path: path.name)
def test_each_topic_has_exactly_one_main_file(topic_dir: Path) -> None:
    topic_files = sorted(topic_dir.glob("01_*.py"))

    assert len(topic_files) == 1, (
        f"{topic_dir.name}: expected one '01_*.py' file, found {len(topic_files)}."
    )


@pytest.mark.parametrize("path", EXAMPLE_PATHS, ids=lambda path: path.parent.name)
def test_examples_use_only_the_public_package(path: Path) -> None:
    modules = _proxywire_imports(path)

    assert modules == ["proxywire"]


@pytest.mark.parametrize("path", EXAMPLE_PATHS, ids=lambda path: path.parent.name)
def test_example_prints_the_annotated_output(path: Path) -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        item for item in (str(SRC_ROOT), env.get("PYTHONPATH")) if item
    )

    completed = subprocess.run(  # noqa: S603
        [sys.executable, str(path)],
        cwd=path.parent,
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )

    assert completed.returncode == 0, completed.stderr
    assert completed.stderr == ""
    assert completed.stdout.splitlines() == _expected_lines(path)
