# resource_loader.py
"""
Discovery and registration of MCP resources from plain-text files.

Every .txt file under the resources directory is loaded into the resource map
used to resolve {{resource:<path>}} references in prompts, and is published
on the server as a static resource file://<path>. A resource template
file://{path*} serves any resource file on demand.
"""

from pathlib import Path
from typing import Optional, TypeVar
from fastmcp import FastMCP
from sensei.utils.file_scanner import TEXT_SUFFIX, FileLoadError, load_file, scan_directory
from sensei.utils.log_utils import LogContext

T = TypeVar("T", bound=FastMCP)

RESOURCE_URI_PREFIX = "file://"
RESOURCE_MIME = "text/plain"


def resource_uri(path: str) -> str:
    """URI a logical resource path is published under."""
    return f"{RESOURCE_URI_PREFIX}{path}"


def resource_key(path: str) -> str:
    """MCP resource name for a logical path, e.g. docs/intro -> resource-docs-intro."""
    return "resource-" + path.replace("/", "-")


def _register_static_resource(mcp: T, path: str, content: str) -> None:
    def read_resource() -> str:
        return content

    mcp.resource(resource_uri(path), name=resource_key(path),
                 mime_type=RESOURCE_MIME)(read_resource)


def read_resource_file(resources_dir: Path, path: str,
                       log: Optional[LogContext] = None) -> str:
    """
    Read <resources_dir>/<path>.txt for the file://{path*} template.

    Args:
        resources_dir (Path): Resources root.
        path (str): Logical resource path.
        log (LogContext): Logging context.

    Returns:
        str: The file content, or an error text when it cannot be read.
             Paths outside the resources root are never read.
    """
    log = log or LogContext()
    root = resources_dir.resolve()
    file_path = (root / f"{path}{TEXT_SUFFIX}").resolve()
    with log.span("dynamic_resource_load", path=path) as span:
        if not file_path.is_relative_to(root):
            log.warning("⚠️ Refusing resource path outside %s: %s", root, path)
            span.outcome = "error"
            return f"Error: Resource not found at path {path}"
        try:
            return load_file(file_path, log)
        except FileLoadError:
            span.outcome = "error"
            return f"Error: Resource not found at path {path}"


def register_resource_template(mcp: T, resources_dir: Path,
                               log: Optional[LogContext] = None) -> None:
    """ Register the file://{path*} template that reads resources on demand.
        Args:
            mcp (T): The MCP server instance.
            resources_dir (Path): Resources root.
            log (LogContext): Logging context.
    """
    log = log or LogContext()

    def read_file_resource(path: str) -> str:
        return read_resource_file(resources_dir, path, log)

    mcp.resource(f"{RESOURCE_URI_PREFIX}{{path*}}", name="file-resource",
                 mime_type=RESOURCE_MIME)(read_file_resource)


def load_resources(mcp: T, resources_dir: Path | str,
                   log: Optional[LogContext] = None) -> dict[str, str]:
    """
    Load all .txt files in the resources directory and register them with FastMCP.

    Args:
        mcp (T): The MCP server instance.
        resources_dir (Path | str): Directory to scan (created if missing).
        log (LogContext): Logging context.

    Returns:
        dict[str, str]: Logical resource path -> content. Empty if the directory
                        cannot be read.
    Side Effects:
        Adds one static resource per file and the file://{path*} template.
    """
    log = log or LogContext()
    resources_path = Path(resources_dir)

    with log.span("load_resources", directory=str(resources_path)):
        scan = scan_directory(resources_path, log)
        # The map feeds {{resource:...}} resolution even if publishing a file fails.
        resource_map = dict(scan.entries)

        for path, content in resource_map.items():
            try:
                _register_static_resource(mcp, path, content)
            except Exception as e:      # pylint: disable=broad-exception-caught
                log.exception("❌ Failed to register resource %s: %s", path, e)
                continue
            log.info("✅ Registered resource %s (%i chars)", resource_uri(path), len(content))

        if not resource_map:
            log.warning("⚠️ No resource files found in directory '%s'", resources_path)

        register_resource_template(mcp, resources_path, log)
        log.info("✅ Successfully loaded %i resources", len(resource_map))

    return resource_map
