from __future__ import annotations

import re
from pathlib import Path

import umiaware


def _read_pyproject_version(pyproject_path: Path) -> str:
    in_project = False
    for raw_line in pyproject_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line == "[project]":
            in_project = True
            continue
        if in_project and line.startswith("["):
            break
        match = re.match(r'^version\s*=\s*"([^"]+)"\s*$', line) if in_project else None
        if match:
            return match.group(1)
    raise AssertionError(f"Could not find [project].version in {pyproject_path}")


def test_version_matches_pyproject() -> None:
    repo_root = Path(__file__).resolve().parents[2]
    assert umiaware.__version__ == _read_pyproject_version(repo_root / "pyproject.toml")
