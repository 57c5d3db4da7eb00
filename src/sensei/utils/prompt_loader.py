# prompt_loader.py
""" Dynamic discovery and registration of MCP prompts (and tools) from .txt
    template files.

    Each file under the prompts directory becomes a prompt named after its
    logical path. Files whose metadata sets register_as_tool: true also become
    a tool taking one optional string per {{variable}} in the template.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, TypeVar
from fastmcp import FastMCP
from fastmcp.prompts import Prompt
from fastmcp.prompts.prompt import Message, PromptResult
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from pydantic import PrivateAttr
from sensei.mcp_servers.registry import TemplateRecord, TemplateRegistry
from sensei.utils.file_scanner import scan_directory
from sensei.utils.log_utils import LogContext
from sensei.utils.templates import (
    CATCH_ALL_INPUT,
    extract_variables,
    parse_metadata,
    render_template,
    resolve_resources,
)

T = TypeVar("T", bound=FastMCP)

MESSAGE_ROLES = ("user", "assistant")
DEFAULT_ROLE = "user"
TAGS = {"public"}


@dataclass
class PromptLoadSummary:
    """Counts reported by load_prompts()."""
    considered: int = 0
    loaded: int = 0
    tools: int = 0
    failed: list[str] = field(default_factory=list)


def build_template(name: str, raw: str, resource_map: Mapping[str, str],
                   source: Optional[Path] = None,
                   log: Optional[LogContext] = None) -> TemplateRecord:
    """
    Turn raw file content into a TemplateRecord.

    Args:
        name (str): Logical name of the template.
        raw (str): File content, metadata block included.
        resource_map (Mapping[str, str]): Resources for {{resource:...}} references.
        source (Path): File the content came from.
        log (LogContext): Logging context.

    Returns:
        TemplateRecord: Metadata, resolved body and the variables of the body.
    """
    log = log or LogContext()
    metadata, content = parse_metadata(raw)
    log.debug("Processing prompt %s: %i chars, description=%s, tool=%s",
              name, len(content), bool(metadata.description), bool(metadata.register_as_tool))

    resolved = resolve_resources(content, resource_map, log)
    variables = tuple(extract_variables(resolved.text))
    return TemplateRecord(name=name, body=resolved.text, metadata=metadata,
                          variables=variables, source=source)


def _message_role(record: TemplateRecord, log: LogContext) -> str:
    role = (record.metadata.role or DEFAULT_ROLE).strip().lower()
    if role not in MESSAGE_ROLES:
        log.warning("⚠️ Prompt '%s' has unsupported role '%s'; using '%s'.",
                    record.name, record.metadata.role, DEFAULT_ROLE)
        return DEFAULT_ROLE
    return role


def _make_prompt_fn(record: TemplateRecord, log: LogContext) -> Callable[[], PromptResult]:
    role = _message_role(record, log)

    def render_prompt() -> PromptResult:
        return [Message(record.body, role=role)]

    return render_prompt


def _optional_string(description: str) -> dict[str, Any]:
    return {"anyOf": [{"type": "string"}, {"type": "null"}],
            "default": None, "description": description}


def template_input_schema(variables: tuple[str, ...] | list[str]) -> dict[str, Any]:
    """
    JSON schema for a template tool's arguments.

    One optional string per variable, in order of first use, then the
    catch-all `input` when the template has no {{input}} of its own.
    Variable names are used as-is, so {{class}} or {{1st}} are accepted too.
    """
    properties: dict[str, Any] = {}
    for name in variables:
        properties[name] = _optional_string(f"Value for {{{{{name}}}}} in the template.")
    if CATCH_ALL_INPUT not in properties:
        properties[CATCH_ALL_INPUT] = _optional_string(
            "Extra text appended after the rendered template.")
    return {"type": "object", "properties": properties}


class TemplateTool(Tool):
    """ 20261019 MMH TemplateTool
        A tool that renders one template. FastMCP reads `parameters` as the
        input schema, so the accepted arguments are exactly the template's
        variables (plus `input`) whatever their spelling.
    """
    body: str
    variables: tuple[str, ...] = ()
    _log: LogContext = PrivateAttr(default_factory=LogContext)

    @classmethod
    def from_record(cls, record: TemplateRecord,
                    log: Optional[LogContext] = None) -> "TemplateTool":
        source = {"source_file": record.source.name} if record.source else None
        tool = cls(
            name=record.tool_name,
            description=record.metadata.description,
            tags=set(TAGS),
            meta=source,
            parameters=template_input_schema(record.variables),
            body=record.body,
            variables=record.variables,
        )
        if log is not None:
            tool._log = log
        return tool

    def render(self, arguments: Mapping[str, Any]) -> str:
        """Fill the template from tool arguments. Missing or null values render empty."""
        inputs = {k: None if v is None else str(v) for k, v in arguments.items()}
        with self._log.span("tool_execution", tool=self.name):
            return render_template(self.body, self.variables, inputs)

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        return ToolResult(content=self.render(arguments))


def register_template(mcp: T, record: TemplateRecord,
                      registry: Optional[TemplateRegistry] = None,
                      log: Optional[LogContext] = None) -> None:
    """
    Register a template as a prompt, and as a tool when its metadata asks for it.

    Both components are built before either is added, so a template that
    fails part way leaves nothing behind on the server.

    Args:
        mcp (T): The MCP server instance.
        record (TemplateRecord): The resolved template.
        registry (TemplateRegistry): Names already in use on this server.
        log (LogContext): Logging context.

    Raises:
        ValueError: The prompt or tool name is already registered.
    Side Effects:
        Adds a prompt (and maybe a tool) to the FastMCP server.
    """
    log = log or LogContext()
    registry = registry if registry is not None else TemplateRegistry()
    registry.check(record)

    source = {"source_file": record.source.name} if record.source else None
    prompt = Prompt.from_function(_make_prompt_fn(record, log), name=record.name,
                                  description=record.metadata.description,
                                  tags=set(TAGS), meta=source)
    tool = None
    if record.is_tool:
        log.debug("Found variables in tool %s: %s", record.tool_name, list(record.variables))
        tool = TemplateTool.from_record(record, log)

    if tool is not None:
        mcp.add_tool(tool)
        registry.register_tool(record)
    mcp.add_prompt(prompt)
    registry.register_prompt(record)

    if tool is not None:
        log.info("🔧 Registered prompt '%s' as tool '%s' (variables: %s)", record.name,
                 record.tool_name, ", ".join(record.variables) or CATCH_ALL_INPUT)


def load_prompts(mcp: T, prompts_dir: Path | str, resource_map: Mapping[str, str],
                 registry: Optional[TemplateRegistry] = None,
                 log: Optional[LogContext] = None) -> PromptLoadSummary:
    """
    Scan for .txt files in the prompts directory and register them with FastMCP.

    Args:
        mcp (T): The MCP server instance.
        prompts_dir (Path | str): The directory to search (created if missing).
        resource_map (Mapping[str, str]): Resources loaded in this pass.
        registry (TemplateRegistry): Names already in use on this server.
        log (LogContext): Logging context.

    Returns:
        PromptLoadSummary: How many files were seen, registered and rejected.
    Side Effects:
        Adds prompts and tools to the FastMCP server. A file that fails to
        build or register is logged and skipped.
    """
    log = log or LogContext()
    registry = registry if registry is not None else TemplateRegistry()
    prompts_path = Path(prompts_dir)
    summary = PromptLoadSummary()

    with log.span("load_prompts", directory=str(prompts_path)):
        scan = scan_directory(prompts_path, log)
        summary.considered = scan.considered
        summary.failed.extend(str(p) for p in scan.failed)

        for name, raw in scan.entries.items():
            try:
                record = build_template(name, raw, resource_map,
                                        source=prompts_path / f"{name}.txt", log=log)
                register_template(mcp, record, registry, log)
            except Exception as e:      # pylint: disable=broad-exception-caught
                log.exception("❌ Failed to register prompt %s: %s", name, e)
                summary.failed.append(name)
                continue

            summary.loaded += 1
            if record.is_tool:
                summary.tools += 1
            desc = record.metadata.description
            log.info("✅ Registered prompt '%s' (%i chars, description: %s, variables: %s)",
                     name, len(record.body), (desc[:50] + "...") if desc else "None",
                     ", ".join(record.variables) or CATCH_ALL_INPUT)

        log.info("✅ Successfully loaded %i prompts (%i tools)", summary.loaded, summary.tools)

    return summary
