"""Code Battles build plugin - prepares the public asset tree of a competitor site.

Usage:
    from code_battles_build import CodeBattles

    plugin = CodeBattles()
    await plugin.build_start()

For the manifest alone:
    from code_battles_build import synchronize

    await synchronize("path/to/project")
"""

from code_battles_build.manifest import ManifestSynchronizer, synchronize
from code_battles_build.plugin import CodeBattles

__all__ = [
    "CodeBattles",
    "ManifestSynchronizer",
    "synchronize",
]
