"""Shared test fixtures."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from grisp_build.models import ApplicationDescriptor
from grisp_build.observability import StructuredLogger
from grisp_build.process import RecordingRunner


@pytest.fixture
def recording_runner() -> RecordingRunner:
    """Provide a runner that records commands instead of executing them."""
    return RecordingRunner()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


def make_app(root: Path, name: str, files: dict[str, str] | None = None) -> ApplicationDescriptor:
    """Create an application directory with overlay files under grisp/grisp_base."""
    app_root = root / name
    app_root.mkdir(parents=True, exist_ok=True)
    for relative, content in (files or {}).items():
        path = app_root / "grisp" / "grisp_base" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return ApplicationDescriptor(name=name, root=app_root)


def run_git(argv: list[str], *, cwd: Path) -> str:
    completed = subprocess.run(
        ["git", *argv],
        cwd=cwd,
        check=False,
        text=True,
        capture_output=True,
    )
    if completed.returncode != 0:
        raise RuntimeError(f"git {' '.join(argv)} failed: {completed.stderr.strip()}")
    return completed.stdout.strip()


def init_repo(path: Path, files: dict[str, str]) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    run_git(["init"], cwd=path)
    run_git(["checkout", "-b", "main"], cwd=path)
    run_git(["config", "user.email", "grisp@example.com"], cwd=path)
    run_git(["config", "user.name", "GRiSP Test"], cwd=path)
    for relative, content in files.items():
        target = path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    run_git(["add", "-A"], cwd=path)
    run_git(["commit", "-m", "initial"], cwd=path)
    return path
