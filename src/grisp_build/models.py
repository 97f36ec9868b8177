"""Core typed dataclasses for build targets, applications, and overlays."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from grisp_build.config import GrispConfig

OverlayKind = Literal["system", "driver"]

BRANCH_PREFIX = "grisp/OTP-"
# Context lines of the Makefile.in hunk in the patch template.
PATCH_BASE_LINES = 10

SYSTEM_DIR = Path("erts/emulator/sys/unix")
DRIVER_DIR = Path("erts/emulator/drivers/unix")


@dataclass(frozen=True, slots=True)
class BuildTarget:
    """Pinned OTP revision and the directories it is staged and installed to."""

    version: str
    url: str
    root: Path

    @classmethod
    def from_config(cls, config: GrispConfig) -> BuildTarget:
        return cls(version=config.otp_version, url=config.otp_url, root=config.root)

    @property
    def branch(self) -> str:
        return f"{BRANCH_PREFIX}{self.version}"

    @property
    def otp_root(self) -> Path:
        return self.root / "otp" / self.version

    @property
    def build_root(self) -> Path:
        return self.otp_root / "build"

    @property
    def install_root(self) -> Path:
        return self.otp_root / "install"


@dataclass(frozen=True, slots=True)
class ApplicationDescriptor:
    name: str
    root: Path


@dataclass(frozen=True, slots=True)
class OverlayFile:
    source: Path
    kind: OverlayKind

    @property
    def basename(self) -> str:
        return self.source.name

    @property
    def name(self) -> str:
        """Registered driver name: the basename without its extension."""
        return self.source.stem

    @property
    def destination(self) -> Path:
        """Path of the copied file relative to the staged tree."""
        directory = SYSTEM_DIR if self.kind == "system" else DRIVER_DIR
        return directory / self.basename


@dataclass(frozen=True, slots=True)
class DriverEntry:
    name: str


@dataclass(frozen=True, slots=True)
class PatchContext:
    lines: int
    drivers: tuple[DriverEntry, ...] = ()

    def __post_init__(self) -> None:
        expected = PATCH_BASE_LINES + len(self.drivers)
        if self.lines != expected:
            raise ValueError(
                f"PatchContext line count {self.lines} does not match "
                f"{PATCH_BASE_LINES} + {len(self.drivers)} drivers."
            )

    def to_template_context(self) -> dict[str, object]:
        return {
            "erts_emulator_makefile_in": {
                "lines": self.lines,
                "drivers": [{"name": driver.name} for driver in self.drivers],
            }
        }


@dataclass(frozen=True, slots=True)
class ToolchainConfig:
    root: Path

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"


@dataclass(frozen=True, slots=True)
class BuildOptions:
    clean: bool = False


@dataclass(slots=True)
class OverlayResult:
    drivers: list[Path] = field(default_factory=list)
    system_files: list[Path] = field(default_factory=list)


@dataclass(slots=True)
class BuildResult:
    target: BuildTarget
    applications: tuple[ApplicationDescriptor, ...]
    drivers: list[Path] = field(default_factory=list)
    system_files: list[Path] = field(default_factory=list)
    patch_context: PatchContext | None = None
