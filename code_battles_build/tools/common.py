"""Shared helpers for external tool invocation."""

import asyncio
import logging
import shutil
from pathlib import Path

import logfire
import sentry_sdk

from code_battles_build.types import Success, ToolError, ToolFailed, ToolMissing, ToolResult

logger = logging.getLogger(__name__)


async def run_tool(command: list[str], cwd: Path, hint: str = "") -> ToolResult:
    """Run an external tool to completion.

    Never raises for tool problems, the caller decides what a failure means:
    - Success(stdout) if the tool exited with status 0
    - ToolMissing if the executable is not on PATH
    - ToolFailed with the combined output otherwise
    """
    tool = command[0]
    executable = shutil.which(tool)
    if executable is None:
        return ToolMissing(tool=tool, hint=hint)

    logger.debug(f"Running {command} in {cwd}")
    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            *command[1:],
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        stdout, _ = await process.communicate()
    except OSError as e:
        return ToolFailed(tool=tool, returncode=None, output=str(e), hint=hint)

    output = stdout.decode(errors="replace")
    if process.returncode != 0:
        return ToolFailed(tool=tool, returncode=process.returncode, output=output, hint=hint)
    return Success(output)


def report(result: ToolResult, done: str, failed: str) -> bool:
    """Log a tool result. Failures become warnings and are reported, never raised.

    Returns:
        True if the tool succeeded
    """
    match result:
        case Success():
            logger.info(f"✨ {done}")
            return True
        case ToolMissing(tool=tool, hint=hint):
            reason = f"{tool} not found"
        case ToolFailed(tool=tool, returncode=returncode, output=output, hint=hint):
            reason = f"{tool} exited with status {returncode}"
            if output.strip():
                logger.debug(output)
        case _:
            raise TypeError(f"Unexpected tool result: {result!r}")

    message = f"⚠️  {failed}, {hint}" if hint else f"⚠️  {failed}"
    logger.warning(f"{message} ({reason})")

    error = ToolError(f"{failed}: {reason}")
    sentry_sdk.capture_exception(error)
    logfire.warn("{message}", message=str(error), tool=tool)
    return False
