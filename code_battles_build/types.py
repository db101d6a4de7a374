"""Type definitions for the code battles build plugin.

This module contains:
- Exception hierarchy for structured error handling
- Result types for external tool invocations
- The manifest record persisted as public/config.json
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

# =============================================================================
# Exceptions
# =============================================================================


class CodeBattlesError(Exception):
    """Base for all code battles build errors."""

    pass


class BrokenInvariant(CodeBattlesError):
    """Setup/config error - cannot continue (e.g., missing scripts directory)."""

    pass


class ConfigCorrupt(BrokenInvariant):
    """The existing manifest is not valid JSON and must not be overwritten."""

    pass


class ConfigUnreadable(BrokenInvariant):
    """The existing manifest exists but cannot be read (permissions, not a file)."""

    pass


class ScanRootMissing(BrokenInvariant):
    """The scripts directory does not exist."""

    pass


class DependencyMissing(BrokenInvariant):
    """The code-battles dependency is not installed."""

    pass


class PersistFailure(CodeBattlesError):
    """Writing the manifest failed. The previous file is left untouched."""

    pass


class RestartRequired(CodeBattlesError):
    """New symbolic links were created, the host command must be re-run."""

    pass


class ToolError(CodeBattlesError):
    """External tool failed - reported, never raised past the tool boundary."""

    pass


# =============================================================================
# Result Types
# =============================================================================

T = TypeVar("T")


@dataclass
class Success(Generic[T]):
    """Tool ran successfully."""

    data: T


@dataclass
class ToolMissing:
    """Tool executable could not be found."""

    tool: str
    hint: str = ""


@dataclass
class ToolFailed:
    """Tool ran but exited with an error."""

    tool: str
    returncode: int | None
    output: str = ""
    hint: str = ""


ToolResult = Success[str] | ToolMissing | ToolFailed


class SyncResult(Enum):
    """Result of a manifest synchronization pass."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"  # Nothing written


# =============================================================================
# Domain Models
# =============================================================================


class Manifest(BaseModel):
    """PyScript configuration listing every Python source for the browser.

    Built from scratch on each synchronization pass, so options that are
    not supplied are absent from the written document.
    """

    files: dict[str, str] = Field(
        default_factory=dict,
        description="Public URL path -> path relative to the scripts directory",
    )
    packages: list[str] | None = Field(None, description="Extra packages for the interpreter")
    interpreter: str | None = Field(None, description="Custom Pyodide version or URL")

    def to_document(self) -> dict:
        """Return the JSON document, omitting options that were not supplied."""
        return self.model_dump(exclude_none=True)
