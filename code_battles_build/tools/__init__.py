"""Collaborators around the manifest: packing, documentation, Firebase config.

External tools are best-effort. They return a ToolResult instead of raising,
and `report` turns failures into warnings.
"""

from code_battles_build.tools.common import report, run_tool
from code_battles_build.tools.docs import build_api_documentation
from code_battles_build.tools.firebase import copy_firebase
from code_battles_build.tools.packer import pack

__all__ = [
    "build_api_documentation",
    "copy_firebase",
    "pack",
    "report",
    "run_tool",
]
