"""
Typed views over parsed pattern documents.

Each parser turns raw text into a small dataclass or a ParseError carrying
the user-facing message. Validators downstream never see untyped YAML/JSON.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

DELIMITER = "---"
TOO_DEEP = "document is nested too deeply"


@dataclass(frozen=True)
class ParseError:
    message: str


# ============================================================================
# Agents
# ============================================================================

@dataclass(frozen=True)
class AgentDocument:
    """
    An agent definition.

    `body` is the markdown after the YAML block, or None when the whole
    content is a bare YAML document (instructions then live in a field).
    """
    name: str
    description: str
    tools: Optional[List[str]] = None
    all_tools: bool = False
    instructions: Any = None
    body: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_markdown(self) -> bool:
        return self.body is not None


def split_agent_content(content: str) -> Tuple[str, Optional[str]]:
    """
    Split agent content into (yaml_text, body).

    A leading frontmatter block runs from the first `---` line to the next.
    Otherwise the first `---` line separates YAML from the body. Without any
    delimiter line the content is bare YAML and body is None.
    """
    lines = content.split("\n")
    markers = [i for i, line in enumerate(lines) if line.strip() == DELIMITER]

    if markers and markers[0] == 0 and len(markers) > 1:
        end = markers[1]
        return "\n".join(lines[1:end]), "\n".join(lines[end + 1:]).strip()

    if markers and markers[0] > 0:
        start = markers[0]
        return "\n".join(lines[:start]), "\n".join(lines[start + 1:]).strip()

    return content, None


def parse_agent(content: str) -> Union[AgentDocument, ParseError]:
    yaml_text, body = split_agent_content(content)
    try:
        doc = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        return ParseError(f"Invalid YAML: {_yaml_problem(e)}")
    except RecursionError:
        return ParseError(f"Invalid YAML: {TOO_DEEP}")

    if not isinstance(doc, dict):
        return ParseError("Agent must be valid YAML object")

    name = doc.get("name")
    if not name or not isinstance(name, str):
        return ParseError('Agent must have a "name" field')

    description = doc.get("description")
    if not description or not isinstance(description, str):
        return ParseError('Agent must have a "description" field')

    tools, all_tools = _parse_tools(doc.get("tools"))

    return AgentDocument(
        name=name,
        description=description,
        tools=tools,
        all_tools=all_tools,
        instructions=doc.get("instructions"),
        body=body,
        fields=doc,
    )


def _parse_tools(raw: Any) -> Tuple[Optional[List[str]], bool]:
    if not raw:
        return None, False
    if isinstance(raw, str):
        if raw.strip() == "*":
            return None, True
        return [t.strip() for t in raw.split(",") if t.strip()], False
    if isinstance(raw, list):
        # Non-string entries are ignored
        return [t for t in raw if isinstance(t, str)], False
    return None, False


# ============================================================================
# Hooks
# ============================================================================

@dataclass(frozen=True)
class HookEntry:
    type: str
    command: Optional[str] = None


@dataclass(frozen=True)
class HookConfig:
    """A Claude Code settings.json hook block."""
    hooks: List[HookEntry]
    matcher: Any = None
    event: Optional[str] = None


INVALID_HOOK_JSON = (
    "Invalid JSON format. Hooks must be valid JSON configurations for Claude Code settings.json"
)


def parse_hook_config(content: str) -> Union[HookConfig, ParseError]:
    try:
        doc = json.loads(content)
    except (ValueError, RecursionError):
        return ParseError(INVALID_HOOK_JSON)

    raw_hooks = doc.get("hooks") if isinstance(doc, dict) else None
    if not isinstance(raw_hooks, list):
        return ParseError('Hook must have a "hooks" array containing hook configurations')

    hooks = []
    for raw in raw_hooks:
        hook_type = raw.get("type") if isinstance(raw, dict) else None
        if not hook_type:
            return ParseError('Each hook must have a "type" field (usually "command")')
        command = raw.get("command")
        if hook_type == "command" and (not command or not isinstance(command, str)):
            return ParseError('Command-type hooks must have a "command" field')
        hooks.append(HookEntry(type=str(hook_type), command=command if isinstance(command, str) else None))

    event = doc.get("event") or doc.get("eventType")
    return HookConfig(
        hooks=hooks,
        matcher=doc.get("matcher"),
        event=event if isinstance(event, str) else None,
    )


# ============================================================================
# Slash commands
# ============================================================================

@dataclass(frozen=True)
class CommandFrontmatter:
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def allowed_tools(self) -> Any:
        return self.fields.get("allowed-tools")


def parse_command_frontmatter(content: str) -> Union[CommandFrontmatter, ParseError, None]:
    """None when the command has no frontmatter block."""
    lines = content.split("\n")
    if lines[0].strip() != DELIMITER:
        return None

    end = next((i for i in range(1, len(lines)) if lines[i].strip() == DELIMITER), None)
    if end is None:
        return ParseError("Incomplete YAML frontmatter - missing closing ---")

    try:
        doc = yaml.safe_load("\n".join(lines[1:end]))
    except (yaml.YAMLError, RecursionError):
        return ParseError("Invalid YAML frontmatter")

    return CommandFrontmatter(fields=doc if isinstance(doc, dict) else {})


def _yaml_problem(error: yaml.YAMLError) -> str:
    problem = getattr(error, "problem", None)
    if problem:
        mark = getattr(error, "problem_mark", None)
        if mark is not None:
            return f"{problem} (line {mark.line + 1}, column {mark.column + 1})"
        return problem
    return str(error)
