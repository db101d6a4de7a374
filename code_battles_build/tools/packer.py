"""Packing the multi-file competitor project into a single file with pybunch."""

from code_battles_build.paths import ProjectPaths
from code_battles_build.tools.common import run_tool
from code_battles_build.types import ToolResult

PACKAGE_NAME = "code_battles"
ENTRY_POINT = "main"
PACKER_HINT = "perhaps install pybunch with `pip install --upgrade pybunch`"


def pack_command(paths: ProjectPaths, command: str = "pybunch") -> list[str]:
    """Build the pybunch invocation, run from the scripts directory."""
    return [command, "-d", ".", "-p", PACKAGE_NAME, "-e", ENTRY_POINT, "-o", paths.packed.name]


async def pack(paths: ProjectPaths, command: str = "pybunch") -> ToolResult:
    """Merge public/scripts into public/scripts/packed.py.

    The previous packed.py is removed first, so a failed run never leaves
    a stale bundle behind.
    """
    paths.packed.unlink(missing_ok=True)
    return await run_tool(pack_command(paths, command), cwd=paths.scripts, hint=PACKER_HINT)
