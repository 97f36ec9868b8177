"""Structured logging and progress reporting helpers."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, TextIO

Level = Literal["debug", "info", "console", "error"]

_PREFIXES: dict[str, str] = {
    "debug": "===> [debug] ",
    "info": "===> ",
    "console": "",
    "error": "===> [error] ",
}


@dataclass(slots=True)
class StructuredLogger:
    """Collects build records and echoes them to a text stream.

    ``info`` records are step headlines, ``console`` records are sub-step
    progress lines. ``debug`` records are only echoed when ``verbose`` is set
    but are always kept in :attr:`records`.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    stream: TextIO | None = None
    verbose: bool = False

    def log(
        self,
        *,
        operation: str,
        step: str | None,
        message: str,
        level: Level = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "step": step,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        self._echo(level, message)

    def info(self, operation: str, message: str, *, step: str | None = None) -> None:
        self.log(operation=operation, step=step, message=message, level="info")

    def console(self, operation: str, message: str, *, step: str | None = None) -> None:
        self.log(operation=operation, step=step, message=message, level="console")

    def debug(
        self,
        operation: str,
        message: str,
        *,
        step: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.log(operation=operation, step=step, message=message, level="debug", extra=extra)

    def records_for_step(self, step: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("step") == step]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path

    def _echo(self, level: Level, message: str) -> None:
        if self.stream is None:
            return
        if level == "debug" and not self.verbose:
            return
        print(f"{_PREFIXES[level]}{message}", file=self.stream, flush=True)


def console_logger(*, verbose: bool = False) -> StructuredLogger:
    """Return a logger that echoes progress to stderr."""
    return StructuredLogger(stream=sys.stderr, verbose=verbose)
