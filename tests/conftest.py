"""Pytest configuration and shared fixtures for Sensei tests."""

from pathlib import Path
from typing import Any, Callable

import pytest

from sensei.utils.log_utils import TRACE, LogContext, get_logger


class FakeMCP:
    """Records what the loaders register, keyed by name / URI."""

    def __init__(self) -> None:
        self.prompts: dict[str, tuple[Callable[..., Any], dict[str, Any]]] = {}
        self.tools: dict[str, tuple[Any, dict[str, Any]]] = {}
        self.resources: dict[str, tuple[Callable[..., Any], dict[str, Any]]] = {}

    def add_prompt(self, prompt: Any) -> Any:
        self.prompts[prompt.name] = (prompt.fn, {"description": prompt.description,
                                                 "tags": prompt.tags, "meta": prompt.meta})
        return prompt

    def add_tool(self, tool: Any) -> Any:
        self.tools[tool.name] = (tool, {"description": tool.description,
                                        "tags": tool.tags, "meta": tool.meta})
        return tool

    def resource(self, uri: str, **kwargs: Any):
        def decorator(fn):
            self.resources[uri] = (fn, kwargs)
            return fn
        return decorator


@pytest.fixture
def fake_mcp() -> FakeMCP:
    """Create a stand-in registration target."""
    return FakeMCP()


@pytest.fixture
def log() -> LogContext:
    """Create a logging context that records everything down to TRACE."""
    return LogContext(get_logger("sensei.tests"), TRACE)


def write(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def content_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Create a small prompts/resources tree."""
    prompts = tmp_path / "prompts"
    resources = tmp_path / "resources"

    write(resources, "guides/style.txt", "Be brief.")
    write(resources, "notes.txt", "General notes.")

    write(prompts, "sensei.txt", "---\ndescription: Instructions\n---\n\nYou are Sensei.\n")
    write(prompts, "explain.txt",
          "---\n"
          "description: Explain a concept\n"
          "register_as_tool: true\n"
          "tool_name: explain_concept\n"
          "---\n"
          "\n"
          "Explain {{topic}} to a {{level}} reader. {{resource:guides/style}}")
    write(prompts, "nested/greet.txt", "Hello {{name}}! {{resource:missing/thing}}")
    write(prompts, "readme.md", "not a prompt")
    return prompts, resources
