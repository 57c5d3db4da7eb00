# mcp_servers/registry.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from sensei.utils.templates import PromptMetadata

@dataclass(frozen=True)
class TemplateRecord:
    name: str
    body: str
    metadata: PromptMetadata = field(default_factory=PromptMetadata)
    variables: Tuple[str, ...] = ()
    source: Optional[Path] = None

    @property
    def tool_name(self) -> str:
        """Name the template is exposed under as a tool."""
        return self.metadata.tool_name or self.name

    @property
    def is_tool(self) -> bool:
        return bool(self.metadata.register_as_tool)

class TemplateRegistry:
    """Templates exposed by one server, by prompt name and by tool name."""

    def __init__(self) -> None:
        self.prompts: Dict[str, TemplateRecord] = {}
        self.tools: Dict[str, TemplateRecord] = {}

    def check(self, record: TemplateRecord) -> None:
        """Raise ValueError if registering `record` would reuse a name."""
        if record.name in self.prompts:
            raise ValueError(f"Duplicate prompt name: {record.name} "
                             f"(already loaded from {self.prompts[record.name].source})")
        if record.is_tool and record.tool_name in self.tools:
            raise ValueError(f"Duplicate tool name: {record.tool_name} "
                             f"(already loaded from {self.tools[record.tool_name].source})")

    def register_prompt(self, record: TemplateRecord) -> None:
        if record.name in self.prompts:
            raise ValueError(f"Duplicate prompt name: {record.name}")
        self.prompts[record.name] = record

    def register_tool(self, record: TemplateRecord) -> None:
        if record.tool_name in self.tools:
            raise ValueError(f"Duplicate tool name: {record.tool_name}")
        self.tools[record.tool_name] = record
