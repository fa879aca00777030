"""Minimal HTTP/1.0 file server built on a state-machine socket layer."""

import pathlib
import tomllib


def get_version() -> str:
    """Read version from pyproject.toml."""
    current_dir = pathlib.Path(__file__).parent
    # Walk up until the project root is found (editable installs, source checkouts)
    for parent in [current_dir, *current_dir.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            with pyproject_path.open("rb") as f:
                pyproject_data = tomllib.load(f)
            project = pyproject_data.get("project", {})
            if project.get("name") == "minihttpd":
                return project["version"]

    # Installed wheels do not ship pyproject.toml
    return "0.0.0"


__version__ = get_version()
