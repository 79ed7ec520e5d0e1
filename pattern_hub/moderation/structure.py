"""
Structural validators, one per content type.

Structural validation is advisory: most findings are warnings, and unknown
types pass. Hard failures are reserved for content that cannot be a
working artifact of its declared type.
"""

import re
from typing import Callable, Dict, List

from pattern_hub.moderation.documents import (
    AgentDocument,
    ParseError,
    parse_agent,
    parse_command_frontmatter,
    parse_hook_config,
)
from pattern_hub.moderation.results import ContentType, ValidationResult, type_name
from pattern_hub.moderation.shell import scan_shell_script

VALID_AGENT_TOOLS = frozenset({
    "Read", "Edit", "Write", "Bash", "Grep", "Glob", "Task", "MultiEdit",
    "TodoWrite", "WebFetch", "WebSearch", "NotebookEdit", "LS",
})
AGENT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-_\s]+$")
MIN_INSTRUCTIONS_LENGTH = 10

VALID_MATCHERS = frozenset({"Bash", "Write", "Edit", "MultiEdit", "Read", "Grep", "Glob", "*"})

MARKDOWN_HEADER = re.compile(r"^\s{0,3}#{1,6}\s+\S", re.MULTILINE)
SUBSECTION_HEADER = re.compile(r"^\s{0,3}#{2,6}\s+\S", re.MULTILINE)
CLAUDE_MD_SECTIONS = ("tech stack", "project", "command", "workflow", "style")
IMPORT_REFERENCE = re.compile(r"@[a-zA-Z0-9/\-._]+")
MAX_IMPORTS = 10
SAFETY_QUALIFIER = re.compile(r"never|avoid|don['’]t|do not", re.IGNORECASE)

ALLOWED_TOOLS_PATTERN = re.compile(r"^[\w\s,():*\-]+$")
INLINE_SHELL_MARKERS = ("!`", "!git", "!npm")

MIN_PROMPT_LENGTH = 10
LONG_PROMPT_LENGTH = 400
BRACKET_PLACEHOLDER = re.compile(r"\[[^\[\]\n]+\]")
ACTION_VERB = re.compile(r"(analyze|review|check|help|create|generate|explain)", re.IGNORECASE)
FILE_REFERENCE = re.compile(r"@[\w][\w./\-]*")

# "{" then a key or "}"; "{ cmd; }" and "[ test ]" are shell
JSON_OBJECT_START = re.compile(r'\s*\{\s*(?:"|\}|$)')
HOOK_EXIT_WARNING = "Hook command should explicitly exit with status code (exit 0 for success, exit 1 to block)"


def _result(warnings: List[str]) -> ValidationResult:
    return ValidationResult.ok(warnings)


# ============================================================================
# agent
# ============================================================================

def validate_agent(content: str) -> ValidationResult:
    doc = parse_agent(content)
    if isinstance(doc, ParseError):
        return ValidationResult.fail(doc.message)

    if not AGENT_NAME_PATTERN.match(doc.name):
        return ValidationResult.fail("Agent name contains invalid characters")

    warnings = []
    if doc.tools:
        unknown = [t for t in doc.tools if t != "*" and t not in VALID_AGENT_TOOLS]
        if unknown:
            warnings.append(f"Unknown tools: {', '.join(unknown)}")

    warnings.extend(_agent_instruction_warnings(doc))
    return _result(warnings)


def _agent_instruction_warnings(doc: AgentDocument) -> List[str]:
    if doc.is_markdown:
        if not doc.body:
            return ["System prompt appears to be empty"]
        if len(doc.body) < MIN_INSTRUCTIONS_LENGTH:
            return ["System prompt is very short"]
        return []

    if not doc.instructions:
        return ["No instructions field found in agent YAML"]
    if not isinstance(doc.instructions, str):
        return ["Instructions field should be a string"]
    if len(doc.instructions.strip()) < MIN_INSTRUCTIONS_LENGTH:
        return ["Instructions are very short"]
    return []


# ============================================================================
# hook
# ============================================================================

def validate_hook(content: str) -> ValidationResult:
    """JSON settings block when the content opens a JSON object, shell script otherwise."""
    if JSON_OBJECT_START.match(content):
        return validate_hook_config(content)
    return validate_hook_script(content)


def validate_hook_config(content: str) -> ValidationResult:
    config = parse_hook_config(content)
    if isinstance(config, ParseError):
        return ValidationResult.fail(config.message)

    warnings = []
    matcher = config.matcher
    if matcher:
        if not isinstance(matcher, str):
            warnings.append("Matcher should be a string (tool name or regex pattern)")
        elif matcher not in VALID_MATCHERS and "|" not in matcher:
            warnings.append(
                f'Unusual matcher pattern: "{matcher}". Common patterns: Bash, Write|Edit|MultiEdit, *'
            )

        event = _suggest_event_type(content)
        if event and not config.event:
            warnings.append(f"This appears to be a {event} hook based on content")

    for hook in config.hooks:
        if hook.type != "command" or not hook.command:
            continue
        cmd = hook.command
        if "#!/bin/bash" not in cmd and "#!/bin/sh" not in cmd:
            warnings.append("Command script should start with a shebang (#!/bin/bash)")
        if "exit " not in cmd:
            warnings.append(HOOK_EXIT_WARNING)
        if "$CLAUDE_HOOK_PAYLOAD" in cmd and "jq" not in cmd:
            warnings.append("Consider using jq to parse $CLAUDE_HOOK_PAYLOAD JSON")

    return _result(warnings)


def _suggest_event_type(content: str) -> str:
    lowered = content.lower()
    if "pretooluse" in lowered or "before" in lowered:
        return "PreToolUse"
    if "posttooluse" in lowered or "after" in lowered:
        return "PostToolUse"
    if "userpromptsubmit" in lowered or "prompt" in lowered:
        return "UserPromptSubmit"
    return ""


def validate_hook_script(content: str) -> ValidationResult:
    scan = scan_shell_script(content)

    if scan.open_quote:
        return ValidationResult.fail(f"Unbalanced quotes in hook script (unterminated {scan.open_quote})")
    if not scan.parens_balanced:
        return ValidationResult.fail("Unbalanced parentheses in hook script")
    operator = scan.dangling_operator()
    if operator:
        return ValidationResult.fail(f"Hook script ends with a dangling '{operator}' operator")

    warnings = []
    if not content.lstrip().startswith("#!"):
        warnings.append("Script should start with a shebang (#!/bin/bash)")
    if scan.unquoted_positional:
        warnings.append(
            f"Quote positional parameters to prevent word splitting: {', '.join(scan.unquoted_positional)}"
        )
    if not re.search(r"\bexit\b", content):
        warnings.append(HOOK_EXIT_WARNING)
    return _result(warnings)


# ============================================================================
# claude_md
# ============================================================================

def validate_claude_md(content: str) -> ValidationResult:
    warnings = []
    if not MARKDOWN_HEADER.search(content):
        warnings.append("No markdown headers found - consider adding structure")

    lowered = content.lower()
    if not any(section in lowered for section in CLAUDE_MD_SECTIONS):
        warnings.append("Consider adding common sections like Tech Stack, Commands, or Workflow")

    if len(IMPORT_REFERENCE.findall(content)) > MAX_IMPORTS:
        warnings.append("Large number of imports detected - verify all paths are correct")

    if _has_unqualified_deletion(content):
        warnings.append("Contains potentially dangerous commands without safety warnings")

    return _result(warnings)


def _has_unqualified_deletion(content: str) -> bool:
    lines = content.split("\n")
    for i, line in enumerate(lines):
        if "rm -rf" not in line:
            continue
        nearby = "\n".join(lines[max(0, i - 1):i + 2])
        if not SAFETY_QUALIFIER.search(nearby):
            return True
    return False


# ============================================================================
# command
# ============================================================================

def validate_command(content: str) -> ValidationResult:
    frontmatter = parse_command_frontmatter(content)
    if isinstance(frontmatter, ParseError):
        return ValidationResult.fail(frontmatter.message)

    warnings = []
    allowed_tools = frontmatter.allowed_tools if frontmatter else None
    if allowed_tools:
        if not isinstance(allowed_tools, str):
            warnings.append("allowed-tools should be a string")
        elif not ALLOWED_TOOLS_PATTERN.match(allowed_tools):
            warnings.append("allowed-tools contains invalid characters")

    if "$ARGUMENTS" in content and "task" not in content.lower():
        warnings.append("Uses $ARGUMENTS but no clear task description found")

    if any(marker in content for marker in INLINE_SHELL_MARKERS) and not allowed_tools:
        warnings.append("Contains bash execution but no tool restrictions defined")

    if not SUBSECTION_HEADER.search(content):
        warnings.append("Consider adding section headers (## Context, ## Task) for clarity")

    return _result(warnings)


# ============================================================================
# prompt
# ============================================================================

def validate_prompt(content: str) -> ValidationResult:
    if len(content) < MIN_PROMPT_LENGTH:
        return ValidationResult.fail("Prompt is too short to be useful")

    warnings = []
    if len(content) > LONG_PROMPT_LENGTH:
        warnings.append("Long prompt - consider breaking into smaller, focused prompts")
    if BRACKET_PLACEHOLDER.search(content) and "$ARGUMENTS" not in content:
        warnings.append("Contains brackets [] - consider using $ARGUMENTS for dynamic content")
    if not ACTION_VERB.search(content):
        warnings.append("Prompt may benefit from clearer action words (analyze, review, create, etc.)")
    if _has_malformed_reference(content):
        warnings.append("Contains @ symbol - ensure file references use proper @filename syntax")
    return _result(warnings)


def _has_malformed_reference(content: str) -> bool:
    for match in re.finditer("@", content):
        start = match.start()
        # user@example.com is an address, not a reference
        if start > 0 and (content[start - 1].isalnum() or content[start - 1] == "_"):
            continue
        if not FILE_REFERENCE.match(content, start):
            return True
    return False


VALIDATORS: Dict[str, Callable[[str], ValidationResult]] = {
    ContentType.AGENT.value: validate_agent,
    ContentType.HOOK.value: validate_hook,
    ContentType.CLAUDE_MD.value: validate_claude_md,
    ContentType.COMMAND.value: validate_command,
    ContentType.PROMPT.value: validate_prompt,
}


def validate_content_structure(content: str, content_type: str) -> ValidationResult:
    """Dispatch on type. Unknown types pass."""
    validator = VALIDATORS.get(type_name(content_type))
    if validator is None:
        return ValidationResult.ok()
    return validator(content)
