""" 20261019 MMH sensei_server.py — FastMCP server that serves text templates.
    Based on https://gofastmcp.com/servers/server
    Resources are loaded first so that prompts can inline them with
    {{resource:<path>}}; every prompt file then becomes a prompt, and those
    flagged register_as_tool become tools as well.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional
from fastmcp import FastMCP
from sensei.mcp_servers.registry import TemplateRegistry
from sensei.utils.file_scanner import TEXT_SUFFIX, FileLoadError, load_file
from sensei.utils.log_utils import LEVELS, DEFAULT_LEVEL, LogContext, get_logger, level_from_name
from sensei.utils.logging_config import setup_logging
from sensei.utils.prompt_loader import load_prompts
from sensei.utils.resource_loader import load_resources
from sensei.utils.settings import Settings
from sensei.utils.templates import parse_metadata

TRANSPORTS = ("stdio", "http")


def load_instructions(settings: Settings, log: LogContext) -> str:
    """ Body of the instructions prompt, used as the server instructions.
        Returns an empty string if the file cannot be read.
    """
    path = Path(settings.prompts_dir) / f"{settings.instructions_prompt}{TEXT_SUFFIX}"
    try:
        raw = load_file(path, log)
    except FileLoadError as e:
        log.warning("⚠️ Failed to load instructions prompt %s: %s", path, e.reason)
        return ""
    _, instructions = parse_metadata(raw)
    log.info("✅ Loaded instructions from %s (%i chars)", path, len(instructions))
    return instructions


# -----------------------------------------
# Attach everything to FastMCP at startup
# -----------------------------------------
def attach_everything(mcp: FastMCP, settings: Settings, log: LogContext,
                      registry: Optional[TemplateRegistry] = None) -> TemplateRegistry:
    """ 20261019 MMH attach_everything registers all resources and prompts to the FastMCP server.
        Resources must be loaded before prompts: the prompt bodies are resolved
        against the resource map built here.
    """
    registry = registry if registry is not None else TemplateRegistry()

    resource_map = load_resources(mcp, settings.resources_dir, log.child("resources"))
    log.info("✅\t Resources loaded: %i.", len(resource_map))

    summary = load_prompts(mcp, settings.prompts_dir, resource_map, registry,
                           log.child("prompts"))
    log.info("✅\t Prompts registered: %i (%i tools, %i failed).",
             summary.loaded, summary.tools, len(summary.failed))
    return registry


def create_server(settings: Settings, log: Optional[LogContext] = None) -> FastMCP:
    """ Build the server and attach all content. Loading happens once; there is no reload."""
    log = log or LogContext()
    with log.span("create_server", server=settings.server_name):
        instructions = load_instructions(settings, log)
        mcp = FastMCP(
            name=settings.server_name,
            instructions=instructions or None,
            on_duplicate_tools="error",
            on_duplicate_resources="warn",
            on_duplicate_prompts="error",
            include_fastmcp_meta=False,
        )
        log.info("✅ Starting %s server (instructions: %s).", settings.server_name,
                 "yes" if instructions else "no")
        attach_everything(mcp, settings, log)
    return mcp


def launch_server(settings: Settings, log: Optional[LogContext] = None,
                  transport: str = "stdio", host: str = "127.0.0.1", port: int = 8085) -> None:
    """ 20261019 MMH launch_server
        The entry point to start the FastMCP server.
        Launch the FastMCP server with all resources and prompts attached.
    """
    log = log or LogContext()
    mcp = create_server(settings, log)
    if transport == "http":
        log.info("✅\t %s server listening on http://%s:%i", settings.server_name, host, port)
        mcp.run(transport="http", host=host, port=port)
    else:
        log.info("✅\t %s server connected over stdio and ready.", settings.server_name)
        mcp.run(transport="stdio")


# -----------------------------
# CLI
# -----------------------------
def port_type(value: str) -> int:
    """ 20251101 MMH port_type
        Custom argparse type that validates a TCP port number.
    """
    try:
        port = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Port must be an integer (got {value!r})") from e
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"Port number must be between 1 and 65535 (got {port})")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve text prompts and resources over MCP.")
    parser.add_argument("--prompts-dir", type=Path, default=None,
                        help="Directory of prompt templates (default $SENSEI_PROMPTS_DIR or ./prompts).")
    parser.add_argument("--resources-dir", type=Path, default=None,
                        help="Directory of resource files (default $SENSEI_RESOURCES_DIR or ./resources).")
    parser.add_argument("--log-level", type=str.lower, default=None,
                        help=f"One of {', '.join(LEVELS)} (default $LOG_LEVEL or info).")
    parser.add_argument("--transport", choices=TRANSPORTS, type=str.lower, default="stdio",
                        help="MCP transport (default stdio).")
    parser.add_argument("--host", type=str, default="127.0.0.1",
                        help="Host name or IP address for http (default 127.0.0.1).")
    parser.add_argument("--port", type=port_type, default=8085,
                        help="TCP port for http (default 8085).")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment settings, overridden by any CLI values given."""
    settings = Settings.from_env()
    if args.prompts_dir is not None:
        settings.prompts_dir = args.prompts_dir
    if args.resources_dir is not None:
        settings.resources_dir = args.resources_dir
    if args.log_level is not None:
        settings.log_level = args.log_level
    return settings


def main(argv: Optional[list[str]] = None) -> int:
    """ 20261019 MMH main
        Main entry point when launched "stand alone".
        Parse arguments and start the server. Returns 1 if startup fails.
    """
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)

    level = level_from_name(settings.log_level)
    setup_logging(level=level or DEFAULT_LEVEL)
    log = LogContext(get_logger("sensei"), level or DEFAULT_LEVEL)
    if settings.log_level and level is None:
        log.warning("⚠️ Unrecognized log level '%s'; keeping default.", settings.log_level)
    elif level is not None:
        log.info("Log level set to %s", settings.log_level.upper())

    try:
        launch_server(settings, log, transport=args.transport, host=args.host, port=args.port)
    except Exception as e:      # pylint: disable=broad-exception-caught
        log.exception("🛑 Failed to start server: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
