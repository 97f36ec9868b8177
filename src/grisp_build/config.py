"""Project configuration loaded from ``grisp.toml``."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from grisp_build.errors import ConfigurationError
from grisp_build.models import ToolchainConfig

CONFIG_FILENAME = "grisp.toml"
DEFAULT_OTP_VERSION = "19.3.6"
DEFAULT_OTP_URL = "https://github.com/grisp/otp"
DEFAULT_PLATFORM = "grisp_base"
DEFAULT_HARDWARE_APP = "grisp"
DEFAULT_ROOT = "_grisp"


@dataclass(frozen=True, slots=True)
class GrispConfig:
    toolchain: ToolchainConfig
    root: Path
    otp_version: str = DEFAULT_OTP_VERSION
    otp_url: str = DEFAULT_OTP_URL
    platform: str = DEFAULT_PLATFORM
    hardware_app: str = DEFAULT_HARDWARE_APP


def load_config(
    path: str | Path | None = None,
    *,
    project_dir: str | Path = ".",
    toolchain_root: str | Path | None = None,
) -> GrispConfig:
    """Read the ``[grisp]`` table and return a resolved :class:`GrispConfig`.

    *path* defaults to ``<project_dir>/grisp.toml``. A missing default file is
    allowed when *toolchain_root* is given; an explicit *path* must exist.
    Relative paths in the file resolve against *project_dir*.
    """
    project = Path(project_dir).resolve()
    config_path = Path(path) if path is not None else project / CONFIG_FILENAME
    if config_path.exists():
        table = _read_grisp_table(config_path)
    elif path is None and toolchain_root is not None:
        table = {}
    else:
        raise ConfigurationError(
            "Configuration file not found.",
            hint=f"Create {CONFIG_FILENAME} with a [grisp.toolchain] root entry.",
            context={"operation": "load_config", "path": str(config_path)},
        )
    return config_from_mapping(table, project_dir=project, toolchain_root=toolchain_root)


def config_from_mapping(
    table: Mapping[str, Any],
    *,
    project_dir: str | Path = ".",
    toolchain_root: str | Path | None = None,
) -> GrispConfig:
    project = Path(project_dir).resolve()
    toolchain_table = table.get("toolchain", {})
    if not isinstance(toolchain_table, Mapping):
        raise ConfigurationError(
            "`grisp.toolchain` must be a table.",
            context={"operation": "load_config", "value": repr(toolchain_table)},
        )
    root_value = toolchain_root if toolchain_root is not None else toolchain_table.get("root")
    if root_value is None or root_value == "":
        raise ConfigurationError(
            "Toolchain root is not configured.",
            hint="Set `root` under [grisp.toolchain] or pass --toolchain.",
            context={"operation": "load_config"},
        )

    return GrispConfig(
        toolchain=ToolchainConfig(root=_resolve(project, _string(root_value, "toolchain.root"))),
        root=_resolve(project, _string(table.get("root", DEFAULT_ROOT), "root")),
        otp_version=_string(table.get("otp_version", DEFAULT_OTP_VERSION), "otp_version"),
        otp_url=_string(table.get("otp_url", DEFAULT_OTP_URL), "otp_url"),
        platform=_string(table.get("platform", DEFAULT_PLATFORM), "platform"),
        hardware_app=_string(table.get("hardware_app", DEFAULT_HARDWARE_APP), "hardware_app"),
    )


def _read_grisp_table(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            "Configuration file is not valid TOML.",
            context={"operation": "load_config", "path": str(path), "error": str(exc)},
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            "Configuration file could not be read.",
            context={"operation": "load_config", "path": str(path), "error": str(exc)},
        ) from exc
    table = parsed.get("grisp", {})
    if not isinstance(table, Mapping):
        raise ConfigurationError(
            "`grisp` must be a table.",
            context={"operation": "load_config", "path": str(path)},
        )
    return table


def _string(value: object, key: str) -> str:
    if isinstance(value, Path):
        return str(value)
    if not isinstance(value, str) or not value:
        raise ConfigurationError(
            f"`grisp.{key}` must be a non-empty string.",
            context={"operation": "load_config", "key": key, "value": repr(value)},
        )
    return value


def _resolve(project: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else project / path
