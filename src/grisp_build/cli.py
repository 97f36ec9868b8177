"""Command line entrypoint.

Usage:
    grisp-build build [--clean] [--project DIR] [--config FILE] [--toolchain DIR]
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from grisp_build.apps import discover_applications
from grisp_build.build import GrispBuild
from grisp_build.config import load_config
from grisp_build.errors import GrispBuildError
from grisp_build.models import BuildOptions
from grisp_build.observability import StructuredLogger, console_logger


def cmd_build(args: argparse.Namespace, logger: StructuredLogger) -> None:
    # Paths given on the command line are relative to the shell, not the project.
    toolchain = args.toolchain.expanduser().resolve() if args.toolchain is not None else None
    config = load_config(
        args.config,
        project_dir=args.project,
        toolchain_root=toolchain,
    )
    dependencies, project_apps = discover_applications(args.project, profile=args.profile)
    GrispBuild(config=config, logger=logger).run(
        BuildOptions(clean=args.clean),
        dependencies,
        project_apps,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grisp-build",
        description="Build a custom Erlang/OTP system for GRiSP",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    parser.add_argument("--log-file", type=Path, help="Write structured build records as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    build_p = sub.add_parser("build", help="Build a custom Erlang/OTP system for GRiSP")
    build_p.add_argument(
        "-c",
        "--clean",
        action="store_true",
        default=False,
        help="Remove untracked files from the OTP checkout before building",
    )
    build_p.add_argument("--project", type=Path, default=Path("."), help="Project directory")
    build_p.add_argument("--config", type=Path, help="Configuration file (default: grisp.toml)")
    build_p.add_argument("--toolchain", type=Path, help="Override the toolchain root")
    build_p.add_argument("--profile", default="default", help="rebar3 profile holding dependencies")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = console_logger(verbose=args.verbose)
    try:
        if args.command == "build":
            cmd_build(args, logger)
    except GrispBuildError as exc:
        logger.log(
            operation=args.command,
            step=None,
            message=str(exc),
            level="error",
            extra=exc.to_dict(),
        )
        return 1
    finally:
        if args.log_file is not None:
            logger.to_json_lines(args.log_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
