"""Shared test fixtures: throwaway code battles projects under tmp_path."""

from pathlib import Path

import logfire
import pytest

from code_battles_build.links import link_code_battles
from code_battles_build.paths import ProjectPaths
from code_battles_build.settings import CodeBattlesSettings


def _write(path: Path, content: str = "") -> Path:
    """Write a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def write():
    """Helper writing a file and its parent directories."""
    return _write


@pytest.fixture(scope="session", autouse=True)
def _configure_logfire() -> None:
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def project(tmp_path) -> ProjectPaths:
    """A project with an empty public/scripts directory."""
    paths = ProjectPaths.from_root(tmp_path)
    paths.scripts.mkdir(parents=True)
    return paths


@pytest.fixture
def installed_project(project) -> ProjectPaths:
    """A project with node_modules/code-battles/dist installed and a main.py."""
    _write(project.framework_source / "__init__.py", "from code_battles.battles import CodeBattles\n")
    _write(project.framework_source / "battles.py", "class CodeBattles: ...\n")
    _write(project.pyscript_source / "core.js", "// pyscript\n")
    project.pdoc_template.mkdir(parents=True)
    _write(project.scripts / "main.py", "import code_battles\n")
    return project


@pytest.fixture
def linked_project(installed_project) -> ProjectPaths:
    """An installed project whose symbolic links already exist."""
    link_code_battles(installed_project)
    return installed_project


@pytest.fixture
def settings(project) -> CodeBattlesSettings:
    """Settings pointing at the project, with tools that are never installed."""
    return CodeBattlesSettings(
        root=project.root,
        packer_command="code-battles-test-missing-pybunch",
        docs_command="code-battles-test-missing-pdoc",
    )
