"""External command execution with captured output and typed failures."""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from grisp_build.errors import GrispBuildError, ToolchainError

OUTPUT_LIMIT = 2000


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True, slots=True)
class CommandCall:
    argv: tuple[str, ...]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None


class CommandRunner(Protocol):
    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        error: type[GrispBuildError] = ToolchainError,
        operation: str = "command",
    ) -> str:
        """Run *argv* to completion and return its stdout, raising *error* on failure."""


@dataclass(slots=True)
class SubprocessRunner:
    """Runs commands on the host, blocking until each one exits."""

    name: str = "subprocess"

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        error: type[GrispBuildError] = ToolchainError,
        operation: str = "command",
    ) -> str:
        command = list(argv)
        try:
            completed = subprocess.run(
                command,
                cwd=str(cwd) if cwd is not None else None,
                env=dict(env) if env is not None else None,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise error(
                f"Unable to start `{command[0]}`.",
                hint="Ensure the command is installed and the working directory exists.",
                context={
                    "operation": operation,
                    "command": " ".join(command),
                    "cwd": str(cwd) if cwd is not None else "",
                    "error": str(exc),
                },
            ) from exc
        result = CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        check_result(command, result, cwd=cwd, error=error, operation=operation)
        return result.stdout


@dataclass(slots=True)
class RecordingRunner:
    """In-process runner that records invocations instead of executing them.

    ``results`` maps an argv tuple to the scripted :class:`CommandResult`;
    unknown commands succeed with empty output. ``effects`` maps an argv tuple
    to a callable invoked with the :class:`CommandCall`, which lets tests
    reproduce the filesystem changes a real command would make.
    """

    name: str = "recording"
    calls: list[CommandCall] = field(default_factory=list)
    results: dict[tuple[str, ...], CommandResult] = field(default_factory=dict)
    effects: dict[tuple[str, ...], Callable[[CommandCall], None]] = field(default_factory=dict)

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        error: type[GrispBuildError] = ToolchainError,
        operation: str = "command",
    ) -> str:
        key = tuple(argv)
        call = CommandCall(argv=key, cwd=cwd, env=dict(env) if env is not None else None)
        self.calls.append(call)
        result = self.results.get(key, CommandResult())
        check_result(list(argv), result, cwd=cwd, error=error, operation=operation)
        effect = self.effects.get(key)
        if effect is not None:
            effect(call)
        return result.stdout

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [call.argv for call in self.calls]


def check_result(
    command: Sequence[str],
    result: CommandResult,
    *,
    cwd: Path | None,
    error: type[GrispBuildError],
    operation: str,
) -> None:
    if result.returncode == 0:
        return
    raise error(
        f"Command `{' '.join(command)}` failed with exit code {result.returncode}.",
        hint="Inspect the command output, fix the cause, and rerun the build.",
        context={
            "operation": operation,
            "command": " ".join(command),
            "cwd": str(cwd) if cwd is not None else "",
            "returncode": str(result.returncode),
            "stdout": _tail(result.stdout),
            "stderr": _tail(result.stderr),
        },
    )


def _tail(output: str) -> str:
    output = output.strip()
    if len(output) > OUTPUT_LIMIT:
        return "..." + output[-OUTPUT_LIMIT:]
    return output
