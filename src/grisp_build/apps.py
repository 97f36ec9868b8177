"""Application discovery and overlay precedence ordering."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from grisp_build.config import DEFAULT_HARDWARE_APP
from grisp_build.models import ApplicationDescriptor


def resolve_applications(
    dependencies: Iterable[ApplicationDescriptor],
    project_apps: Iterable[ApplicationDescriptor],
    *,
    hardware_app: str = DEFAULT_HARDWARE_APP,
) -> tuple[ApplicationDescriptor, ...]:
    """Return dependencies then project apps, with every *hardware_app* entry moved last.

    Relative order within both groups is preserved and duplicates are kept, so
    the hardware-support application's overlay files are copied last.
    """
    applications = [*dependencies, *project_apps]
    others = [app for app in applications if app.name != hardware_app]
    hardware = [app for app in applications if app.name == hardware_app]
    return (*others, *hardware)


def discover_applications(
    project_dir: str | Path,
    *,
    profile: str = "default",
) -> tuple[tuple[ApplicationDescriptor, ...], tuple[ApplicationDescriptor, ...]]:
    """Find ``(dependencies, project_apps)`` in a rebar3 project layout."""
    project = Path(project_dir).resolve()
    project_apps = _project_apps(project)
    project_names = {app.name for app in project_apps}

    lib_dir = project / "_build" / profile / "lib"
    dependencies: list[ApplicationDescriptor] = []
    if lib_dir.is_dir():
        for entry in sorted(lib_dir.iterdir(), key=lambda path: path.name):
            if entry.is_dir() and entry.name not in project_names:
                dependencies.append(ApplicationDescriptor(name=entry.name, root=entry.resolve()))
    return tuple(dependencies), project_apps


def application_name(app_dir: Path) -> str | None:
    """Return the OTP application name declared in *app_dir*, if any."""
    for pattern in ("src/*.app.src", "ebin/*.app"):
        for candidate in sorted(app_dir.glob(pattern)):
            return candidate.name.split(".", 1)[0]
    return None


def _project_apps(project: Path) -> tuple[ApplicationDescriptor, ...]:
    apps_dir = project / "apps"
    if apps_dir.is_dir():
        found: list[ApplicationDescriptor] = []
        for entry in sorted(apps_dir.iterdir(), key=lambda path: path.name):
            if not entry.is_dir():
                continue
            name = application_name(entry)
            if name is not None:
                found.append(ApplicationDescriptor(name=name, root=entry))
        return tuple(found)
    name = application_name(project) or project.name
    return (ApplicationDescriptor(name=name, root=project),)
