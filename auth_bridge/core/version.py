"""Service version lookup for /health and the OpenAPI document."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Final

import tomllib

DISTRIBUTION_NAME: Final[str] = "telegram-auth-bridge"
PYPROJECT_PATH: Final[Path] = Path(__file__).resolve().parents[2] / "pyproject.toml"
UNKNOWN_VERSION: Final[str] = "0.0.0"


def version_from_pyproject(path: Path = PYPROJECT_PATH) -> str | None:
    """Return ``[project].version`` from a source checkout, if there is one."""
    try:
        with path.open("rb") as fp:
            project = tomllib.load(fp).get("project")
    except FileNotFoundError:
        return None

    value = project.get("version") if isinstance(project, dict) else None
    return value if isinstance(value, str) else None


def resolve_version() -> str:
    # Installed metadata wins over the checkout so wheels report what was built.
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return version_from_pyproject() or UNKNOWN_VERSION


APP_VERSION: Final[str] = resolve_version()

__all__ = ["APP_VERSION", "resolve_version", "version_from_pyproject"]
