"""Copy the Firebase configuration into the public asset tree."""

import logging
import shutil

from code_battles_build.paths import ProjectPaths

logger = logging.getLogger(__name__)


def copy_firebase(paths: ProjectPaths) -> bool:
    """Copy src/firebase.json to public/firebase-configuration.json if present.

    Returns:
        True if the file was copied
    """
    if not paths.firebase_source.is_file():
        return False

    shutil.copyfile(paths.firebase_source, paths.firebase_target)
    logger.info("✨ Copied Firebase configuration")
    return True
