"""Build lifecycle hooks for code battles projects.

The host (a bundler or the bundled dev server in `code_battles_build.dev`)
calls two hooks:
- build_start: once per build, links assets and regenerates everything
- configure_server: once per dev server, watches public/scripts and
  re-packs / re-synchronizes on every Python source change
"""

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import sentry_sdk

from code_battles_build.links import link_code_battles
from code_battles_build.manifest import ManifestSynchronizer, is_eligible
from code_battles_build.paths import ProjectPaths
from code_battles_build.settings import CodeBattlesSettings
from code_battles_build.tools import build_api_documentation, copy_firebase, pack, report
from code_battles_build.types import CodeBattlesError, RestartRequired, SyncResult, ToolResult

logger = logging.getLogger(__name__)

FULL_RELOAD = {"type": "full-reload"}
WATCH_EVENTS = ("add", "change", "unlink")

# =============================================================================
# Host protocols
# =============================================================================

FileCallback = Callable[[str], Awaitable[None]]


class Watcher(Protocol):
    def add(self, path: Path) -> None: ...

    def on(self, event: str, callback: FileCallback) -> None: ...


class ReloadChannel(Protocol):
    async def send(self, message: dict) -> None: ...


class DevServer(Protocol):
    watcher: Watcher
    ws: ReloadChannel


# =============================================================================
# Plugin
# =============================================================================


@dataclass
class BuildReport:
    """Outcome of build_start."""

    documentation: ToolResult
    manifest: SyncResult
    firebase_copied: bool
    packing: ToolResult


class CodeBattles:
    name = "code-battles"

    def __init__(self, settings: CodeBattlesSettings | None = None):
        self.settings = settings or CodeBattlesSettings()
        self.paths = ProjectPaths.from_root(self.settings.root)
        self.synchronizer = ManifestSynchronizer(self.paths)

    async def build_start(self) -> BuildReport:
        """Prepare public/ for a build.

        Raises:
            RestartRequired: If new symbolic links were created
            BrokenInvariant: If the dependency, scripts directory or manifest is broken
            PersistFailure: If the manifest could not be written
        """
        if link_code_battles(self.paths):
            raise RestartRequired("New symbolic links were generated, please re-run the previous command")

        documentation = await build_api_documentation(
            self.paths,
            self.settings.documentation,
            command=self.settings.docs_command,
        )
        report(documentation, done="Created API documentation", failed="Failed building API documentation")

        manifest = await self.synchronizer.synchronize(self.settings.pyscript)
        firebase_copied = copy_firebase(self.paths)
        packing = await self.refresh()

        return BuildReport(
            documentation=documentation,
            manifest=manifest,
            firebase_copied=firebase_copied,
            packing=packing,
        )

    async def refresh(self) -> ToolResult:
        """Re-pack the Python sources into packed.py."""
        result = await pack(self.paths, command=self.settings.packer_command)
        report(result, done="Packed all Python files", failed="Failed packing the Python files")
        return result

    def is_watched_source(self, path: str | Path) -> bool:
        """Check whether a changed path should trigger a refresh.

        Only eligible sources inside public/scripts count; packed.py and
        __pycache__ contents are ignored.
        """
        absolute = Path(os.path.abspath(path))
        try:
            relative = absolute.relative_to(self.paths.scripts)
        except ValueError:
            return False
        return is_eligible(relative.as_posix())

    def configure_server(self, server: DevServer) -> None:
        """Watch public/scripts and reload clients on source changes."""

        async def on_file_change(path: str) -> None:
            await self.handle_file_change(server, path)

        server.watcher.add(self.paths.scripts)
        for event in WATCH_EVENTS:
            server.watcher.on(event, on_file_change)

    async def handle_file_change(self, server: DevServer, path: str | Path) -> bool:
        """Refresh after a file change.

        Returns:
            True if clients were told to reload
        """
        if not self.is_watched_source(path):
            return False

        logger.debug(f"Source changed: {path}")
        await self.refresh()
        try:
            await self.synchronizer.synchronize(self.settings.pyscript)
        except CodeBattlesError as e:
            # Keep the dev server alive, the next change retries
            sentry_sdk.capture_exception(e)
            logger.error(f"Failed synchronizing PyScript configuration: {e}")
            return False

        await server.ws.send(FULL_RELOAD)
        return True
