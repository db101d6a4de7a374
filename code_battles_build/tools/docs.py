"""API documentation generation with pdoc."""

from code_battles_build.paths import ProjectPaths
from code_battles_build.settings import DocumentationOptions
from code_battles_build.tools.common import run_tool
from code_battles_build.types import Success, ToolFailed, ToolResult

DOCS_HINT = "perhaps install pdoc with `pip install --upgrade pdoc`"

# pdoc writes these next to api.html, the site does not serve them
GENERATED_ARTIFACTS = ("index.html", "search.js")


def docs_command(
    paths: ProjectPaths,
    options: DocumentationOptions | None = None,
    command: str = "pdoc",
) -> list[str]:
    """Build the pdoc invocation, run from the scripts directory.

    Args:
        paths: Project layout
        options: Display options, defaults apply when omitted
        command: pdoc executable

    Returns:
        Argument list writing api.html into public/
    """
    options = options or DocumentationOptions()

    args = [command, paths.api_entry.name, "--no-show-source", "-t", str(paths.pdoc_template)]
    if options.footer_text:
        args += ["--footer-text", options.footer_text]
    args += [
        "--favicon",
        options.favicon,
        "--logo",
        options.logo,
        "--logo-link",
        options.logo_link,
        "-o",
        str(paths.public),
    ]
    return args


async def build_api_documentation(
    paths: ProjectPaths,
    options: DocumentationOptions | None = None,
    command: str = "pdoc",
) -> ToolResult:
    """Render public/api.html from public/scripts/api.py."""
    result = await run_tool(docs_command(paths, options, command), cwd=paths.scripts, hint=DOCS_HINT)
    if not isinstance(result, Success):
        return result

    try:
        for name in GENERATED_ARTIFACTS:
            (paths.public / name).unlink(missing_ok=True)
    except OSError as e:
        return ToolFailed(tool=command, returncode=None, output=str(e), hint=DOCS_HINT)

    return result
