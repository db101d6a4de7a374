"""Centralized path management for the code battles project layout.

Every location is derived from an explicit project root. Nothing here (or
anywhere else in the package) changes the process working directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path

DEPENDENCY_NAME = "code-battles"


def get_project_root() -> Path:
    """Get the project root directory.

    Priority:
    1. CODE_BATTLES_ROOT env var (explicit override)
    2. Current working directory (default)
    """
    if env_root := os.environ.get("CODE_BATTLES_ROOT"):
        return Path(env_root)
    return Path.cwd()


@dataclass(frozen=True)
class ProjectPaths:
    """Absolute paths used by the build hooks."""

    root: Path

    @classmethod
    def from_root(cls, root: Path | str) -> "ProjectPaths":
        return cls(root=Path(os.path.abspath(root)))

    # Public asset tree

    @property
    def public(self) -> Path:
        return self.root / "public"

    @property
    def scripts(self) -> Path:
        return self.public / "scripts"

    @property
    def pyscript(self) -> Path:
        return self.public / "pyscript"

    @property
    def config(self) -> Path:
        return self.public / "config.json"

    @property
    def packed(self) -> Path:
        return self.scripts / "packed.py"

    @property
    def api_entry(self) -> Path:
        return self.scripts / "api.py"

    @property
    def framework_link(self) -> Path:
        return self.scripts / "code_battles"

    @property
    def firebase_target(self) -> Path:
        return self.public / "firebase-configuration.json"

    # Installed dependency

    @property
    def dependency_dist(self) -> Path:
        return self.root / "node_modules" / DEPENDENCY_NAME / "dist"

    @property
    def framework_source(self) -> Path:
        return self.dependency_dist / "code_battles"

    @property
    def pyscript_source(self) -> Path:
        return self.dependency_dist / "pyscript"

    @property
    def pdoc_template(self) -> Path:
        return self.dependency_dist / "pdoc-template"

    # Sources

    @property
    def firebase_source(self) -> Path:
        return self.root / "src" / "firebase.json"
