"""Build orchestration: stage, overlay, patch, and cross-compile OTP."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from grisp_build.apps import resolve_applications
from grisp_build.config import GrispConfig
from grisp_build.models import ApplicationDescriptor, BuildOptions, BuildResult, BuildTarget
from grisp_build.observability import StructuredLogger
from grisp_build.overlay import copy_overlays
from grisp_build.patch import patch_otp
from grisp_build.process import CommandRunner, SubprocessRunner
from grisp_build.stage import ensure_checkout
from grisp_build.toolchain import build_otp, ensure_toolchain


@dataclass(slots=True)
class GrispBuild:
    """Runs the full custom OTP build for one project.

    Steps run strictly in order and the first error propagates unchanged;
    nothing is cleaned up after a failure.
    """

    config: GrispConfig
    runner: CommandRunner = field(default_factory=SubprocessRunner)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    base_env: Mapping[str, str] | None = None

    @property
    def target(self) -> BuildTarget:
        return BuildTarget.from_config(self.config)

    def run(
        self,
        options: BuildOptions,
        dependencies: Sequence[ApplicationDescriptor],
        project_apps: Sequence[ApplicationDescriptor] = (),
    ) -> BuildResult:
        target = self.target
        toolchain = self.config.toolchain
        ensure_toolchain(toolchain)

        self.logger.info("build", f"Checking out Erlang/OTP {target.version}", step="stage")
        ensure_checkout(
            target.url,
            target.build_root,
            target.branch,
            clean=options.clean,
            runner=self.runner,
            logger=self.logger,
        )

        applications = resolve_applications(
            dependencies,
            project_apps,
            hardware_app=self.config.hardware_app,
        )
        self.logger.debug(
            "build",
            "Resolved overlay applications.",
            step="overlay",
            extra={"applications": [app.name for app in applications]},
        )

        self.logger.info("build", "Preparing GRiSP code", step="overlay")
        overlays = copy_overlays(
            applications,
            self.config.platform,
            target.build_root,
            logger=self.logger,
        )
        patch_context = patch_otp(
            target.build_root,
            overlays.drivers,
            runner=self.runner,
            logger=self.logger,
        )

        self.logger.info("build", "Building", step="build")
        build_otp(
            target.build_root,
            target.install_root,
            toolchain,
            runner=self.runner,
            logger=self.logger,
            base_env=self.base_env,
        )
        self.logger.info("build", "Done", step="build")

        return BuildResult(
            target=target,
            applications=applications,
            drivers=overlays.drivers,
            system_files=overlays.system_files,
            patch_context=patch_context,
        )
