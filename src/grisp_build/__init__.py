"""Public package entrypoint for the GRiSP OTP builder."""

from .apps import discover_applications, resolve_applications
from .build import GrispBuild
from .config import GrispConfig, load_config
from .errors import (
    ConfigurationError,
    FileOperationError,
    GrispBuildError,
    PatchError,
    ToolchainError,
    VersionControlError,
)
from .models import (
    ApplicationDescriptor,
    BuildOptions,
    BuildResult,
    BuildTarget,
    DriverEntry,
    OverlayFile,
    PatchContext,
    ToolchainConfig,
)
from .observability import StructuredLogger
from .process import RecordingRunner, SubprocessRunner

__all__ = [
    "ApplicationDescriptor",
    "BuildOptions",
    "BuildResult",
    "BuildTarget",
    "ConfigurationError",
    "DriverEntry",
    "FileOperationError",
    "GrispBuild",
    "GrispBuildError",
    "GrispConfig",
    "OverlayFile",
    "PatchContext",
    "PatchError",
    "RecordingRunner",
    "StructuredLogger",
    "SubprocessRunner",
    "ToolchainConfig",
    "ToolchainError",
    "VersionControlError",
    "discover_applications",
    "load_config",
    "resolve_applications",
]
