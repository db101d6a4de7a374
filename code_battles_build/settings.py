"""Configuration management for the code battles plugin using pydantic-settings."""

from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from code_battles_build.paths import get_project_root


class PyScriptOptions(BaseModel):
    """Additional configuration for PyScript.

    `None` means "not supplied" and is different from an empty list: an
    explicit `packages=[]` is written to the manifest, an omitted one is not.
    """

    packages: list[str] | None = Field(
        default=None,
        description="Additional Python packages to install in the browser",
    )
    interpreter: str | None = Field(
        default=None,
        description="Custom Pyodide version",
    )


class DocumentationOptions(BaseModel):
    """Additional configuration for pdoc."""

    favicon: str = Field(default="/images/logo.png", description="URL for the favicon")
    footer_text: str = Field(default="", description="Optional footer text for the sidebar")
    logo: str = Field(default="/images/logo-transparent.png", description="URL for the logo")
    logo_link: str = Field(default="/", description="Where the logo links to")


class CodeBattlesSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CODE_BATTLES_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    root: Path = Field(default_factory=get_project_root, description="Project root directory")

    pyscript: PyScriptOptions = Field(default_factory=PyScriptOptions)
    documentation: DocumentationOptions = Field(default_factory=DocumentationOptions)

    # External tools
    packer_command: str = Field(default="pybunch", description="Executable used to pack the Python sources")
    docs_command: str = Field(default="pdoc", description="Executable used to build the API documentation")

    # Dev server
    dev_host: str = Field(default="127.0.0.1", description="Host the dev server binds to")
    dev_port: int = Field(default=5173, description="Port the dev server binds to")

    log_level: str = Field(default="INFO", description="Log level for the code_battles_build logger")

    # Error reporting
    sentry_dsn: str = Field(
        default="",
        validation_alias=AliasChoices("sentry_dsn", "SENTRY_DSN"),
        description="Sentry DSN, reporting is off when empty",
    )
    environment: str = Field(default="dev", description="Environment name attached to Sentry events")
