from pathlib import Path

import pytest
from conftest import init_repo

from grisp_build.errors import PatchError, VersionControlError
from grisp_build.models import DriverEntry, PatchContext
from grisp_build.observability import StructuredLogger
from grisp_build.patch import (
    PATCH_FILENAME,
    apply_patch,
    build_patch_context,
    load_patch_template,
    patch_otp,
    render_patch,
)
from grisp_build.process import RecordingRunner, SubprocessRunner

MAKEFILE_FRAGMENT = (
    "OS_OBJS += $(OBJDIR)/sys_float.o \\\n"
    "\t$(OBJDIR)/sys_time.o\n"
    "\n"
    "DRV_OBJS = \\\n"
    "\t$(OBJDIR)/efile_drv.o \\\n"
    "\t$(OBJDIR)/inet_drv.o \\\n"
    "\t$(OBJDIR)/zlib_drv.o \\\n"
    "\t$(OBJDIR)/ram_file_drv.o \\\n"
    "\t$(OBJDIR)/ttsl_drv.o\n"
    "endif\n"
)


def test_context_line_count_tracks_driver_count() -> None:
    for count in (0, 1, 5):
        drivers = [f"erts/emulator/drivers/unix/d{i}.c" for i in range(count)]
        context = build_patch_context(drivers)
        assert context.lines == 10 + count
        assert [d.name for d in context.drivers] == [f"d{i}" for i in range(count)]


def test_context_rejects_inconsistent_line_count() -> None:
    with pytest.raises(ValueError):
        PatchContext(lines=10, drivers=(DriverEntry(name="x"),))


def test_template_context_uses_makefile_keys() -> None:
    context = build_patch_context(["a/drv1.c", "b/drv2.c"])

    assert context.to_template_context() == {
        "erts_emulator_makefile_in": {
            "lines": 12,
            "drivers": [{"name": "drv1"}, {"name": "drv2"}],
        }
    }


def test_rendered_patch_hunk_matches_declared_line_count() -> None:
    context = build_patch_context(["drv1.c", "drv2.c"])

    rendered = render_patch(load_patch_template(), context)

    lines = rendered.splitlines()
    header = next(line for line in lines if line.startswith("@@"))
    assert ",10 +" in header
    assert header.split()[2].endswith(",12")
    body = lines[lines.index(header) + 1 :]
    assert len([line for line in body if not line.startswith("+")]) == 10
    assert len(body) == 12
    assert "+\t$(OBJDIR)/drv1.o \\" in lines
    assert lines.index("+\t$(OBJDIR)/drv1.o \\") < lines.index("+\t$(OBJDIR)/drv2.o \\")
    assert rendered.endswith("\n")


def test_render_without_drivers_keeps_context_only() -> None:
    rendered = render_patch(load_patch_template(), build_patch_context([]))

    assert not [line for line in rendered.splitlines() if line.startswith("+\t")]


def test_render_reports_undefined_variables() -> None:
    with pytest.raises(PatchError) as excinfo:
        render_patch("{{ missing.value }}", build_patch_context([]))

    assert excinfo.value.code == "E_PATCH"


def test_apply_patch_writes_applies_and_removes_file(tmp_path: Path) -> None:
    runner = RecordingRunner()
    seen: list[str] = []
    runner.effects[("git", "apply", PATCH_FILENAME)] = lambda call: seen.append(
        (tmp_path / PATCH_FILENAME).read_text(encoding="utf-8")
    )

    apply_patch(tmp_path, "patch body\n", runner=runner)

    assert seen == ["patch body\n"]
    assert runner.calls[0].cwd == tmp_path
    assert not (tmp_path / PATCH_FILENAME).exists()


def test_failed_apply_keeps_patch_file(tmp_path: Path) -> None:
    repo = init_repo(tmp_path / "otp", {"erts/emulator/Makefile.in": "unrelated\n"})

    with pytest.raises(VersionControlError) as excinfo:
        patch_otp(repo, ["drv1.c"], runner=SubprocessRunner(), logger=StructuredLogger())

    assert excinfo.value.context["command"] == "git apply otp.patch"
    assert (repo / PATCH_FILENAME).exists()


def test_patch_applies_to_makefile_with_git(tmp_path: Path) -> None:
    preamble = "".join(f"# line {number}\n" for number in range(1, 869))
    repo = init_repo(
        tmp_path / "otp",
        {"erts/emulator/Makefile.in": preamble + MAKEFILE_FRAGMENT},
    )
    drivers = [
        "erts/emulator/drivers/unix/grisp_gpio_drv.c",
        "erts/emulator/drivers/unix/grisp_spi_drv.c",
    ]

    context = patch_otp(repo, drivers, runner=SubprocessRunner(), logger=StructuredLogger())

    makefile = (repo / "erts" / "emulator" / "Makefile.in").read_text(encoding="utf-8")
    assert context.lines == 12
    assert (
        "\t$(OBJDIR)/ram_file_drv.o \\\n"
        "\t$(OBJDIR)/grisp_gpio_drv.o \\\n"
        "\t$(OBJDIR)/grisp_spi_drv.o \\\n"
        "\t$(OBJDIR)/ttsl_drv.o\n"
    ) in makefile
    assert not (repo / PATCH_FILENAME).exists()
