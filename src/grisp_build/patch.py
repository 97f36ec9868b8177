"""Render and apply the OTP patch that registers overlay drivers.

The emulator's ``Makefile.in`` lists driver objects in ``DRV_OBJS``. The
packaged template is a unified diff that inserts one line per driver into
that list; its hunk header declares ``10 + len(drivers)`` new lines, which
must match the rendered hunk body or ``git apply`` rejects the patch.
"""

from __future__ import annotations

from collections.abc import Iterable
from importlib import resources
from pathlib import Path

from jinja2 import Environment, StrictUndefined, TemplateError

from grisp_build.errors import FileOperationError, PatchError, VersionControlError
from grisp_build.models import PATCH_BASE_LINES, DriverEntry, PatchContext
from grisp_build.observability import StructuredLogger
from grisp_build.process import CommandRunner

PATCH_TEMPLATE = "otp.patch.j2"
PATCH_FILENAME = "otp.patch"


def build_patch_context(drivers: Iterable[str | Path]) -> PatchContext:
    entries = tuple(DriverEntry(name=Path(driver).stem) for driver in drivers)
    return PatchContext(lines=PATCH_BASE_LINES + len(entries), drivers=entries)


def load_patch_template(name: str = PATCH_TEMPLATE) -> str:
    try:
        template = resources.files("grisp_build").joinpath("patches").joinpath(name)
        return template.read_text(encoding="utf-8")
    except OSError as exc:
        raise PatchError(
            "Unable to read packaged patch template.",
            hint="Reinstall grisp-build; the package data appears to be missing.",
            context={"operation": "load_patch_template", "template": name, "error": str(exc)},
        ) from exc


def render_patch(template: str, context: PatchContext) -> str:
    jinja = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=False,
    )
    try:
        return jinja.from_string(template).render(**context.to_template_context())
    except TemplateError as exc:
        raise PatchError(
            "Unable to render patch template.",
            context={"operation": "render_patch", "error": str(exc)},
        ) from exc


def apply_patch(build_root: Path, patch_text: str, *, runner: CommandRunner) -> None:
    """Write *patch_text* into *build_root*, apply it with git, and remove the file.

    On apply failure the patch file is left behind for inspection.
    """
    patch_path = build_root / PATCH_FILENAME
    try:
        patch_path.write_text(patch_text, encoding="utf-8")
    except OSError as exc:
        raise FileOperationError(
            "Unable to write patch file.",
            context={"operation": "apply_patch", "path": str(patch_path), "error": str(exc)},
        ) from exc
    runner.run(
        ["git", "apply", PATCH_FILENAME],
        cwd=build_root,
        error=VersionControlError,
        operation="apply_patch",
    )
    try:
        patch_path.unlink()
    except OSError as exc:
        raise FileOperationError(
            "Unable to remove applied patch file.",
            context={"operation": "apply_patch", "path": str(patch_path), "error": str(exc)},
        ) from exc


def patch_otp(
    build_root: Path,
    drivers: Iterable[str | Path],
    *,
    runner: CommandRunner,
    logger: StructuredLogger,
) -> PatchContext:
    logger.console("patch_otp", "* Patching OTP...", step="patch")
    context = build_patch_context(drivers)
    logger.debug(
        "patch_otp",
        "Rendering Makefile.in patch.",
        step="patch",
        extra={"lines": context.lines, "drivers": [driver.name for driver in context.drivers]},
    )
    apply_patch(build_root, render_patch(load_patch_template(), context), runner=runner)
    return context
