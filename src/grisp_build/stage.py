"""Stage the pinned OTP source tree as a git working copy."""

from __future__ import annotations

from pathlib import Path

from grisp_build.errors import FileOperationError, VersionControlError
from grisp_build.observability import StructuredLogger
from grisp_build.process import CommandRunner


def ensure_checkout(
    url: str,
    directory: Path,
    branch: str,
    *,
    clean: bool,
    runner: CommandRunner,
    logger: StructuredLogger,
) -> None:
    """Make *directory* a working copy of *url* at *branch* with local changes discarded."""
    try:
        directory.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileOperationError(
            "Unable to create staging directory.",
            context={"operation": "stage", "path": str(directory.parent), "error": str(exc)},
        ) from exc

    if _needs_clone(directory):
        logger.console("stage", " * Cloning...  (this may take a while)", step="stage")
        _git(runner, ["clone", url, str(directory)])
    else:
        logger.console("stage", "* Using existing checkout", step="stage")

    _git(runner, ["checkout", branch], cwd=directory)
    _git(runner, ["reset", "--hard"], cwd=directory)
    if clean:
        logger.console("stage", "* Cleaning...", step="stage")
        _git(runner, ["clean", "-fXd"], cwd=directory)
        _git(runner, ["clean", "-fxd"], cwd=directory)


def _needs_clone(directory: Path) -> bool:
    metadata = directory / ".git"
    if metadata.is_dir():
        return False
    if metadata.exists() or metadata.is_symlink():
        raise VersionControlError(
            "Staging directory is not a git working copy.",
            hint="Remove the staging directory and rerun the build to clone it again.",
            context={"operation": "stage", "path": str(metadata)},
        )
    if directory.exists() and (not directory.is_dir() or any(directory.iterdir())):
        raise VersionControlError(
            "Staging directory exists but is not a git working copy.",
            hint="Remove the staging directory and rerun the build to clone it again.",
            context={"operation": "stage", "path": str(directory)},
        )
    return True


def _git(runner: CommandRunner, argv: list[str], cwd: Path | None = None) -> str:
    return runner.run(
        ["git", *argv],
        cwd=cwd,
        error=VersionControlError,
        operation="stage",
    )
