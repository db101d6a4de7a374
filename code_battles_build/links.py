"""Symbolic links to the prebuilt assets of the code-battles dependency."""

import logging
import os
from pathlib import Path

from code_battles_build.paths import ProjectPaths
from code_battles_build.types import DependencyMissing

logger = logging.getLogger(__name__)


def ensure_link(target: Path, source: Path) -> bool:
    """Link target -> source unless target exists, and git-ignore its contents.

    A dangling link at target is replaced.

    Returns:
        True if the link was newly created
    """
    created = False
    if target.is_symlink() and not target.exists():
        logger.warning(f"Replacing dangling link {target}")
        target.unlink()
    if not os.path.lexists(target):
        target.parent.mkdir(parents=True, exist_ok=True)
        target.symlink_to(source, target_is_directory=True)
        created = True
    (target / ".gitignore").write_text("*")
    return created


def link_code_battles(paths: ProjectPaths) -> bool:
    """Link the framework package and the PyScript runtime into public/.

    Returns:
        True if any link was newly created (the host has to be restarted)

    Raises:
        DependencyMissing: If node_modules/code-battles/dist or one of its
            linked directories is not installed
    """
    for source in (paths.dependency_dist, paths.framework_source, paths.pyscript_source):
        if not source.is_dir():
            raise DependencyMissing(f"{source} not found, install the code-battles package first")

    created = [
        ensure_link(paths.framework_link, paths.framework_source),
        ensure_link(paths.pyscript, paths.pyscript_source),
    ]

    logger.info("✨ Created code battles symbolic links")
    return any(created)
