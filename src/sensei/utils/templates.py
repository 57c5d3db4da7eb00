# templates.py
""" Text template handling for prompt files.

    A prompt file may start with a metadata block:

        ---
        description: Explain a concept
        register_as_tool: true
        tool_name: explain
        ---

        Explain {{topic}} using {{resource:guides/style}}.

    parse_metadata() strips the block, resolve_resources() inlines the
    {{resource:...}} references, extract_variables() lists the remaining
    {{name}} placeholders and render_template() fills them in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Mapping, NamedTuple, Optional

from sensei.utils.log_utils import LogContext

# {{resource:path/to/resource}}
RESOURCE_REF_PATTERN = re.compile(r"\{\{resource:(.*?)\}\}")

# {{variable_name}}; the character class excludes ":" so {{resource:...}} never matches.
VARIABLE_PATTERN = re.compile(r"\{\{([a-zA-Z0-9_]+)\}\}")

# ---\nkey: value\n---\n  (the interior is optional so that an empty block is stripped too)
METADATA_PATTERN = re.compile(r"^---\s*\n(?:([\s\S]*?)\n)?---\s*\n")

# Free-form input appended to a tool's output when the template has no {{input}}.
CATCH_ALL_INPUT = "input"

MISSING_RESOURCE = "[Resource not found: {path}]"

_TRUE = "true"


@dataclass(frozen=True)
class PromptMetadata:
    """ Metadata read from the head of a prompt file. Every field is optional;
        None means "use the default behavior".
    """
    description: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    register_as_prompt: Optional[bool] = None
    register_as_tool: Optional[bool] = None
    tool_name: Optional[str] = None

    def to_front_matter(self) -> str:
        """ Serialize the fields that are set back into a metadata block.
            Returns an empty string when nothing is set.
        """
        lines = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            lines.append(f"{f.name}: {value}")
        if not lines:
            return ""
        return "---\n" + "\n".join(lines) + "\n---\n\n"


# Accepted spellings of each recognized key.
_METADATA_KEYS: dict[str, str] = {
    "description": "description",
    "name": "name",
    "role": "role",
    "register_as_prompt": "register_as_prompt",
    "registerasprompt": "register_as_prompt",
    "register_as_tool": "register_as_tool",
    "registerastool": "register_as_tool",
    "tool_name": "tool_name",
    "toolname": "tool_name",
}

_BOOLEAN_FIELDS = {"register_as_prompt", "register_as_tool"}


def parse_metadata(content: str) -> tuple[PromptMetadata, str]:
    """
    Split a leading metadata block from the prompt body.

    Args:
        content (str): Raw file content.

    Returns:
        tuple[PromptMetadata, str]: The metadata, and the content with the whole
            block (both '---' lines and the blank line after it) removed.
            Without a block: empty metadata and the content unchanged.
    """
    match = METADATA_PATTERN.match(content)
    if not match:
        return PromptMetadata(), content

    values: dict[str, object] = {}
    block = match.group(1) or ""
    for line in block.split("\n"):
        # Split on the first colon only; values may contain colons.
        key, sep, value = line.partition(":")
        key = key.strip().lower()
        value = value.strip()
        if not sep or not key or not value:
            continue
        field_name = _METADATA_KEYS.get(key)
        if field_name is None:
            continue
        if field_name in _BOOLEAN_FIELDS:
            values[field_name] = value.lower() == _TRUE
        else:
            values[field_name] = value

    return PromptMetadata(**values), content[match.end():]


def extract_variables(content: str) -> list[str]:
    """ Names of the {{name}} placeholders in `content`, unique, in order of first use.
        {{resource:...}} references are not variables.
    """
    variables: dict[str, None] = {}
    for match in VARIABLE_PATTERN.finditer(content):
        variables.setdefault(match.group(1), None)
    return list(variables)


class ResolvedText(NamedTuple):
    text: str
    references: int
    missing: list[str]


def resolve_resources(content: str, resource_map: Mapping[str, str],
                      log: Optional[LogContext] = None) -> ResolvedText:
    """
    Replace each {{resource:<path>}} with the content loaded for <path>.

    Substitution is a single pass: inserted content is not scanned again.
    A path missing from `resource_map` becomes a visible marker naming it.

    Args:
        content (str): Prompt body.
        resource_map (Mapping[str, str]): Logical resource path -> content.
        log (LogContext): Logging context.

    Returns:
        ResolvedText: The substituted text, the number of references and
            the paths that were not found.
    """
    log = log or LogContext()
    missing: list[str] = []
    references = 0

    def _substitute(match: re.Match) -> str:
        nonlocal references
        references += 1
        path = match.group(1)
        if path not in resource_map:
            log.warning("⚠️ Resource not found: %s", path)
            missing.append(path)
            return MISSING_RESOURCE.format(path=path)
        resource = resource_map[path]
        log.debug("Embedding resource %s (%i chars)", path, len(resource))
        return resource

    with log.span("resolve_resources", content_length=len(content)):
        text = RESOURCE_REF_PATTERN.sub(_substitute, content)
        log.debug("Found %i resource references", references)

    return ResolvedText(text, references, missing)


def render_template(body: str, variables: list[str] | tuple[str, ...],
                    inputs: Mapping[str, Optional[str]]) -> str:
    """
    Fill the {{name}} placeholders of a resolved body.

    Args:
        body (str): Resolved template body.
        variables (list[str]): The template's variable names.
        inputs (Mapping[str, str | None]): Supplied values. Missing or None -> "".

    Returns:
        str: The rendered text. A non-empty `input` value that is not one of
            the variables is appended after a blank line.
    """
    names = set(variables)

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        if name not in names:
            return match.group(0)
        return inputs.get(name) or ""

    text = VARIABLE_PATTERN.sub(_substitute, body)

    extra = inputs.get(CATCH_ALL_INPUT)
    if extra and CATCH_ALL_INPUT not in names:
        text = f"{text}\n\n{extra}"
    return text
