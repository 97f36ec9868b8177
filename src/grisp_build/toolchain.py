"""Cross-compile and install the staged OTP tree with the GRiSP toolchain."""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from pathlib import Path

from grisp_build.errors import ConfigurationError, FileOperationError, ToolchainError
from grisp_build.models import ToolchainConfig
from grisp_build.observability import StructuredLogger
from grisp_build.process import CommandRunner

XCOMP_CONF = "xcomp/erl-xcomp-arm-rtems.conf"
NESTED_INSTALL_DIR = Path("lib") / "erlang"

CONFIGURE_ARGS = (
    f"--xcomp-conf={XCOMP_CONF}",
    "--disable-threads",
    "--prefix=/",
)


def ensure_toolchain(toolchain: ToolchainConfig) -> None:
    if not toolchain.root.is_dir():
        raise ConfigurationError(
            "Toolchain root does not exist.",
            hint="Point [grisp.toolchain] root at an installed GRiSP toolchain.",
            context={"operation": "ensure_toolchain", "root": str(toolchain.root)},
        )
    if not toolchain.bin_dir.is_dir():
        raise ConfigurationError(
            "Toolchain root has no `bin` directory.",
            hint="The toolchain root must contain the cross-compiler under bin/.",
            context={"operation": "ensure_toolchain", "bin_dir": str(toolchain.bin_dir)},
        )
    if not any(
        entry.is_file() and os.access(entry, os.X_OK) for entry in toolchain.bin_dir.iterdir()
    ):
        raise ConfigurationError(
            "Toolchain `bin` directory contains no executables.",
            hint="Install or rebuild the GRiSP toolchain; bin/ must hold the cross-compiler.",
            context={"operation": "ensure_toolchain", "bin_dir": str(toolchain.bin_dir)},
        )


def toolchain_environment(
    toolchain: ToolchainConfig,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    path = env.get("PATH", "")
    env["GRISP_TC_ROOT"] = str(toolchain.root)
    env["PATH"] = f"{toolchain.bin_dir}{os.pathsep}{path}" if path else str(toolchain.bin_dir)
    return env


def build_otp(
    build_root: Path,
    install_root: Path,
    toolchain: ToolchainConfig,
    *,
    runner: CommandRunner,
    logger: StructuredLogger,
    base_env: Mapping[str, str] | None = None,
) -> None:
    env = toolchain_environment(toolchain, base_env)
    logger.debug(
        "build_otp",
        "Toolchain environment prepared.",
        step="build",
        extra={"cwd": str(build_root), "GRISP_TC_ROOT": env["GRISP_TC_ROOT"], "PATH": env["PATH"]},
    )
    steps: tuple[tuple[str, list[str]], ...] = (
        ("* Running autoconf...", ["./otp_build", "autoconf"]),
        (
            "* Running configure...  (this may take a while)",
            ["./otp_build", "configure", *CONFIGURE_ARGS],
        ),
        ("* Building...  (this may take a while)", ["./otp_build", "boot", "-a"]),
        ("* Installing...", ["make", "install", f"DESTDIR={install_root}"]),
    )
    for message, argv in steps:
        logger.console("build_otp", message, step="build")
        runner.run(argv, cwd=build_root, env=env, error=ToolchainError, operation="build_otp")
    normalize_install(install_root)


def normalize_install(install_root: Path, nested: Path = NESTED_INSTALL_DIR) -> None:
    """Move ``<install_root>/<nested>/*`` up to *install_root* and drop the wrapper.

    ``make install`` with ``--prefix=/`` puts the runtime under ``lib/erlang``.
    The wrapper is renamed first so an installed ``lib`` directory can take
    its place.
    """
    wrapper_name = nested.parts[0]
    wrapper = install_root / wrapper_name
    staging = install_root / f"{wrapper_name}.old"
    payload = staging.joinpath(*nested.parts[1:])
    if not (install_root / nested).is_dir():
        raise FileOperationError(
            "Installed runtime not found where expected.",
            hint="Check the `make install` output; the install step may have failed silently.",
            context={"operation": "normalize_install", "path": str(install_root / nested)},
        )
    try:
        if staging.exists():
            shutil.rmtree(staging)
        wrapper.rename(staging)
        for entry in sorted(payload.iterdir()):
            destination = install_root / entry.name
            if destination.is_dir() and not destination.is_symlink():
                shutil.rmtree(destination)
            elif destination.exists() or destination.is_symlink():
                destination.unlink()
            shutil.move(str(entry), str(destination))
        shutil.rmtree(staging)
    except OSError as exc:
        raise FileOperationError(
            "Unable to normalize install directory layout.",
            context={"operation": "normalize_install", "path": str(install_root), "error": str(exc)},
        ) from exc
