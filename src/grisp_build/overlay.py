"""Copy board-specific system and driver sources into the staged OTP tree."""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

from grisp_build.errors import FileOperationError
from grisp_build.models import ApplicationDescriptor, OverlayFile, OverlayKind, OverlayResult
from grisp_build.observability import StructuredLogger

OVERLAY_PATTERNS: tuple[tuple[OverlayKind, str], ...] = (
    ("system", "sys/*.c"),
    ("driver", "drivers/*.c"),
)


def overlay_root(app: ApplicationDescriptor, platform: str) -> Path:
    return app.root / "grisp" / platform


def discover_overlay_files(app: ApplicationDescriptor, platform: str) -> list[OverlayFile]:
    """List *app*'s system files then driver files, each group sorted by path.

    A missing overlay directory yields an empty list.
    """
    root = overlay_root(app, platform)
    files: list[OverlayFile] = []
    for kind, pattern in OVERLAY_PATTERNS:
        for source in sorted(root.glob(pattern)):
            if source.is_file():
                files.append(OverlayFile(source=source, kind=kind))
    return files


def copy_overlays(
    applications: Iterable[ApplicationDescriptor],
    platform: str,
    build_root: Path,
    *,
    logger: StructuredLogger,
) -> OverlayResult:
    """Copy overlay files of *applications* in order; later files overwrite earlier ones."""
    logger.console("copy_overlays", "* Copying C code...", step="overlay")
    result = OverlayResult()
    for app in applications:
        for overlay in discover_overlay_files(app, platform):
            copy_overlay_file(overlay, build_root, logger=logger)
            if overlay.kind == "driver":
                result.drivers.append(overlay.destination)
            else:
                result.system_files.append(overlay.destination)
    return result


def copy_overlay_file(overlay: OverlayFile, build_root: Path, *, logger: StructuredLogger) -> Path:
    target = build_root / overlay.destination
    logger.debug(
        "copy_overlays",
        f"GRiSP - Copy {overlay.source} -> {target}",
        step="overlay",
        extra={"kind": overlay.kind, "source": str(overlay.source), "target": str(target)},
    )
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(overlay.source, target)
    except OSError as exc:
        raise FileOperationError(
            "Unable to copy overlay file into the staged tree.",
            hint="Check that the OTP checkout is complete and writable.",
            context={
                "operation": "copy_overlays",
                "source": str(overlay.source),
                "target": str(target),
                "error": str(exc),
            },
        ) from exc
    return target
