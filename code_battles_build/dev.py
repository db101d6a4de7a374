"""Development server for code battles projects.

Serves public/ over HTTP, watches public/scripts and streams reload messages
to connected browsers:
- GET /health - Health check
- GET /__code_battles/reload - NDJSON stream of reload messages
- /* - Static files from public/ (symbolic links followed)

Usage:
    python -m code_battles_build dev              # http://127.0.0.1:5173
    python -m code_battles_build dev -p 8000      # Custom port
"""

import asyncio
import json
import logging
import os
from collections import defaultdict
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from pathlib import Path

import sentry_sdk
from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from code_battles_build.plugin import CodeBattles, FileCallback

logger = logging.getLogger(__name__)

RELOAD_PATH = "/__code_battles/reload"

# watchdog event type -> watcher event name
EVENT_NAMES = {
    "created": "add",
    "modified": "change",
    "deleted": "unlink",
}


# =============================================================================
# File watching
# =============================================================================


class _ForwardingHandler(FileSystemEventHandler):
    """Forwards file events from the observer thread to a FileWatcher."""

    def __init__(self, watcher: "FileWatcher"):
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type == "moved":
            self.watcher.notify("unlink", os.fsdecode(event.src_path))
            self.watcher.notify("add", os.fsdecode(event.dest_path))
        elif name := EVENT_NAMES.get(event.event_type):
            self.watcher.notify(name, os.fsdecode(event.src_path))


class FileWatcher:
    """Watchdog-backed watcher with add/change/unlink callbacks.

    Events arrive on the observer thread and are queued onto the event loop;
    `run` dispatches them one at a time, in the order they were delivered.
    """

    def __init__(self):
        self._observer = Observer()
        self._handler = _ForwardingHandler(self)
        self._callbacks: dict[str, list[FileCallback]] = defaultdict(list)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[tuple[str, str]] = asyncio.Queue()
        self.roots: list[Path] = []

    def add(self, path: Path) -> None:
        path = Path(path)
        self.roots.append(path)
        if path.is_dir():
            self._observer.schedule(self._handler, str(path), recursive=True)
        else:
            logger.warning(f"Not watching {path}: directory does not exist")

    def on(self, event: str, callback: FileCallback) -> None:
        self._callbacks[event].append(callback)

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._observer.start()
        logger.info(f"Watching {', '.join(str(root) for root in self.roots)}")

    def stop(self) -> None:
        if self._observer.is_alive():
            self._observer.stop()
            self._observer.join()

    def notify(self, event: str, path: str) -> None:
        """Queue an event. Safe to call from any thread."""
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (event, path))

    async def dispatch(self, event: str, path: str) -> None:
        for callback in self._callbacks[event]:
            await callback(path)

    async def run(self) -> None:
        """Dispatch queued events forever."""
        while True:
            event, path = await self._queue.get()
            try:
                await self.dispatch(event, path)
            except Exception as e:
                sentry_sdk.capture_exception(e)
                logger.exception(f"Failed handling {event} for {path}")


# =============================================================================
# Reload channel
# =============================================================================


class ReloadHub:
    """Fans reload messages out to every connected client."""

    def __init__(self):
        self._clients: set[asyncio.Queue[dict]] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def send(self, message: dict) -> None:
        logger.info(f"✨ Sending {message.get('type', 'message')} to {self.client_count} client(s)")
        for queue in self._clients:
            queue.put_nowait(message)

    @asynccontextmanager
    async def subscribe(self):
        queue: asyncio.Queue[dict] = asyncio.Queue()
        self._clients.add(queue)
        try:
            yield queue
        finally:
            self._clients.discard(queue)


@dataclass
class LocalDevServer:
    """The watcher and reload channel handed to CodeBattles.configure_server."""

    watcher: FileWatcher = field(default_factory=FileWatcher)
    ws: ReloadHub = field(default_factory=ReloadHub)


# =============================================================================
# App
# =============================================================================


def _stream_ndjson(data: dict) -> bytes:
    return json.dumps(data).encode("utf-8") + b"\n"


def create_app(plugin: CodeBattles, server: LocalDevServer | None = None) -> FastAPI:
    """Create the dev server app for a project."""
    server = server or LocalDevServer()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run the build hook, then watch sources until shutdown."""
        await plugin.build_start()
        plugin.configure_server(server)
        server.watcher.start()
        task = asyncio.create_task(server.watcher.run())
        try:
            yield
        finally:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            server.watcher.stop()

    app = FastAPI(
        title="Code Battles dev server",
        description="Serves public/ and reloads browsers when Python sources change",
        lifespan=lifespan,
    )
    app.state.server = server

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "clients": server.ws.client_count}

    @app.get(RELOAD_PATH)
    async def reload_stream():
        """Stream reload messages as NDJSON, one line per message."""

        async def event_generator():
            async with server.ws.subscribe() as queue:
                while True:
                    message = await queue.get()
                    yield _stream_ndjson(message)

        return StreamingResponse(
            event_generator(),
            media_type="application/x-ndjson",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering
            },
        )

    app.mount(
        "/",
        StaticFiles(directory=plugin.paths.public, html=True, check_dir=False, follow_symlink=True),
        name="public",
    )
    return app
