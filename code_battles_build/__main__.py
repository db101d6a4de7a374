"""Command line entry point.

Usage:
    python -m code_battles_build build            # Run the build-start hook
    python -m code_battles_build sync             # Only refresh public/config.json
    python -m code_battles_build dev              # Dev server on http://127.0.0.1:5173
    python -m code_battles_build dev -p 8000 --root path/to/project
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import logfire
import uvicorn

from code_battles_build.logs import configure_logging
from code_battles_build.manifest import synchronize
from code_battles_build.plugin import CodeBattles
from code_battles_build.sentry import init_sentry
from code_battles_build.settings import CodeBattlesSettings
from code_battles_build.types import BrokenInvariant, PersistFailure, RestartRequired, SyncResult

logger = logging.getLogger("code_battles_build")


def build_parser(settings: CodeBattlesSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="code-battles", description="Code Battles build plugin")
    parser.add_argument("--root", default=str(settings.root), help=f"Project root (default: {settings.root})")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("build", help="Link assets, build docs, sync the manifest and pack sources")
    subparsers.add_parser("sync", help="Synchronize public/config.json with public/scripts")

    dev = subparsers.add_parser("dev", help="Serve public/ and reload on Python source changes")
    dev.add_argument(
        "--host",
        default=settings.dev_host,
        help=f"Host to bind to (default: {settings.dev_host})",
    )
    dev.add_argument(
        "-p",
        "--port",
        type=int,
        default=settings.dev_port,
        help=f"Port to bind to (default: {settings.dev_port})",
    )
    return parser


def run_build(settings: CodeBattlesSettings) -> int:
    try:
        asyncio.run(CodeBattles(settings).build_start())
    except RestartRequired as e:
        logger.warning(f"✨ {e}")
        return 1
    except (BrokenInvariant, PersistFailure) as e:
        logger.error(f"Build failed: {e}")
        return 1
    return 0


def run_sync(settings: CodeBattlesSettings) -> int:
    try:
        result = asyncio.run(synchronize(settings.root, settings.pyscript))
    except (BrokenInvariant, PersistFailure) as e:
        logger.error(f"Sync failed: {e}")
        return 1
    if result is SyncResult.UNCHANGED:
        logger.info("PyScript configuration already up to date")
    return 0


def run_dev(settings: CodeBattlesSettings, host: str, port: int) -> int:
    from code_battles_build.dev import create_app

    app = create_app(CodeBattles(settings))
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for `python -m code_battles_build` and `code-battles`."""
    settings = CodeBattlesSettings()
    args = build_parser(settings).parse_args(argv)
    settings = settings.model_copy(update={"root": Path(args.root), "log_level": args.log_level})

    configure_logging(level=args.log_level.upper())
    init_sentry(settings)
    logfire.configure(send_to_logfire="if-token-present", console=False)

    if args.command == "build":
        return run_build(settings)
    if args.command == "sync":
        return run_sync(settings)
    return run_dev(settings, args.host, args.port)


if __name__ == "__main__":
    sys.exit(main())
