"""PyScript manifest synchronization.

Keeps public/config.json in sync with the Python sources under public/scripts:
every eligible source file is listed under `files`, mapped from its public URL
to its path relative to the scripts directory. The manifest is only rewritten
when its content actually changes, so unchanged passes never trigger a reload.
"""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from code_battles_build.paths import ProjectPaths
from code_battles_build.settings import PyScriptOptions
from code_battles_build.types import ConfigCorrupt, ConfigUnreadable, Manifest, PersistFailure, ScanRootMissing, SyncResult

logger = logging.getLogger(__name__)

SCRIPTS_URL_PREFIX = "/scripts/"
CACHE_DIR_NAME = "__pycache__"
PACKED_FILENAME = "packed.py"
SOURCE_SUFFIXES = frozenset({".py", ".pyi"})


# =============================================================================
# Core (pure functions, no I/O)
# =============================================================================


def normalize(relative_path: str) -> str:
    """Normalize path separators to forward slashes."""
    return relative_path.replace(os.sep, "/").replace("\\", "/")


def is_eligible(relative_path: PurePosixPath | str) -> bool:
    """Check whether a path relative to the scripts directory belongs in the manifest."""
    path = PurePosixPath(normalize(str(relative_path)))
    if CACHE_DIR_NAME in path.parts:
        return False
    if path.name == PACKED_FILENAME:
        return False
    return path.suffix in SOURCE_SUFFIXES


def build_manifest(relative_paths: Iterable[str], pyscript: PyScriptOptions | None = None) -> Manifest:
    """Build a fresh manifest from a listing of the scripts directory.

    The listing order does not matter, paths are sorted after normalization.
    """
    pyscript = pyscript or PyScriptOptions()

    files: dict[str, str] = {}
    for path in sorted(normalize(p) for p in relative_paths):
        if not is_eligible(path):
            continue
        files[f"{SCRIPTS_URL_PREFIX}{path}"] = f"./{path}"

    manifest = Manifest(files=files)
    if pyscript.packages is not None:
        manifest.packages = list(pyscript.packages)
    if pyscript.interpreter:
        manifest.interpreter = pyscript.interpreter
    return manifest


def serialize_document(document: dict) -> str:
    """Serialize with the formatting PyScript configs use here (4 spaces, no trailing newline)."""
    return json.dumps(document, indent=4, ensure_ascii=False)


# =============================================================================
# Edge (I/O functions)
# =============================================================================


def load_document(path: Path) -> object:
    """Load the existing manifest. Returns {} if the file does not exist.

    Raises:
        ConfigUnreadable: If the file exists but cannot be read
        ConfigCorrupt: If the content is not UTF-8 JSON
    """
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise ConfigUnreadable(f"Cannot read existing manifest {path}: {e}") from e
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigCorrupt(f"Existing manifest is not valid JSON: {path} ({e})") from e


def list_sources(directory: Path) -> list[str]:
    """Recursively list files under directory, relative to it.

    Symbolic links are followed, the framework package is linked in. A
    directory reached twice (a link cycle) is only walked the first time.
    """
    if not directory.is_dir():
        raise ScanRootMissing(f"Scripts directory not found: {directory}")

    listing = []
    visited: set[tuple[int, int]] = set()
    for dirpath, dirnames, filenames in os.walk(directory, followlinks=True):
        stat = os.stat(dirpath)
        if (stat.st_dev, stat.st_ino) in visited:
            dirnames[:] = []
            continue
        visited.add((stat.st_dev, stat.st_ino))
        for filename in filenames:
            listing.append(os.path.relpath(os.path.join(dirpath, filename), directory))
    return sorted(listing)


def write_document(path: Path, document: dict) -> None:
    """Write the manifest atomically. Raises PersistFailure, leaving no partial file."""
    content = serialize_document(document)
    temp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_name = handle.name
            handle.write(content)
        os.replace(temp_name, path)
    except OSError as e:
        if temp_name is not None:
            Path(temp_name).unlink(missing_ok=True)
        raise PersistFailure(f"Failed writing manifest {path}: {e}") from e


# =============================================================================
# Orchestration
# =============================================================================


class ManifestSynchronizer:
    """Synchronizes one project's manifest.

    Passes are serialized: a pass started while another is in flight waits
    for it, so read-compare-write never interleaves.
    """

    def __init__(self, paths: ProjectPaths):
        self.paths = paths
        self._lock = asyncio.Lock()

    async def synchronize(self, pyscript: PyScriptOptions | None = None) -> SyncResult:
        """Rebuild the manifest and write it if it differs from the one on disk.

        Raises:
            ConfigCorrupt: If the existing manifest is not valid JSON
            ConfigUnreadable: If the existing manifest cannot be read
            ScanRootMissing: If public/scripts does not exist
            PersistFailure: If the manifest could not be written
        """
        async with self._lock:
            original = await asyncio.to_thread(load_document, self.paths.config)
            listing = await asyncio.to_thread(list_sources, self.paths.scripts)

            candidate = build_manifest(listing, pyscript).to_document()
            if candidate == original:
                logger.debug(f"Manifest unchanged: {self.paths.config}")
                return SyncResult.UNCHANGED

            await asyncio.to_thread(write_document, self.paths.config, candidate)
            logger.info(f"✨ Created PyScript configuration file ({len(candidate['files'])} files)")
            return SyncResult.UPDATED


async def synchronize(root: Path | str, pyscript: PyScriptOptions | None = None) -> SyncResult:
    """One-shot synchronization for the project at root."""
    return await ManifestSynchronizer(ProjectPaths.from_root(root)).synchronize(pyscript)
