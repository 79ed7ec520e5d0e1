"""
Text rendering for the pattern tools.

Search listings, detail views and the per-type installation instructions
the assistant follows to put a pattern into a project.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

SITE_URL = "https://patternhub.dev"
PREFIX = "pattern-hub"
MANIFEST_PATH = f".claude/{PREFIX}-manifest.json"
SETTINGS_PATH = ".claude/settings.json"
CONFIG_PATH = ".claude/claude.json"
PATTERN_VERSION = "1.0.0"
PREVIEW_CHARS = 500

ICONS = {
    "claude_md": "📝",
    "agent": "🤖",
    "prompt": "💬",
    "hook": "🪝",
    "command": "⚡",
}
DEFAULT_ICON = "📄"

LANGUAGES = {
    "claude_md": "markdown",
    "agent": "yaml",
    "prompt": "markdown",
    "hook": "bash",
    "command": "bash",
}

STRATEGIES = ("append", "merge", "replace")

STRATEGY_STEPS = {
    "append": "Add the block below to the end of CLAUDE.md (create the file if it does not exist).",
    "merge": (
        "If CLAUDE.md already has a block between the BEGIN/END markers for this slug, "
        "replace that block; otherwise add it to the end of the file."
    ),
    "replace": "Overwrite CLAUDE.md so it contains only the block below.",
}

RESTART_NOTICE = """⚠️ **Restart Required**
After installation:
1. Exit Claude Code: `Ctrl+C` (or `Cmd+C` on Mac)
2. Continue session: `claude --continue`"""

_SLUG_RUNS = re.compile(r"[^a-z0-9]+")


@dataclass
class PatternView:
    """The fields of an API item the tools render."""
    id: Any
    title: str
    type: str
    description: str = ""
    content: str = ""
    submitter_name: str = ""
    votes_up: int = 0
    votes_down: int = 0
    created_at: Optional[str] = None
    tags: List[Any] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PatternView":
        return cls(
            id=data.get("id"),
            title=str(data.get("title") or ""),
            type=str(data.get("type") or ""),
            description=str(data.get("description") or ""),
            content=str(data.get("content") or ""),
            submitter_name=str(data.get("submitter_name") or ""),
            votes_up=int(data.get("votes_up") or 0),
            votes_down=int(data.get("votes_down") or 0),
            created_at=data.get("created_at"),
            tags=list(data.get("tags") or []),
        )

    @property
    def icon(self) -> str:
        return ICONS.get(self.type, DEFAULT_ICON)

    @property
    def slug(self) -> str:
        return slugify(self.title)

    @property
    def author(self) -> str:
        return self.submitter_name or "Anonymous"

    @property
    def net_votes(self) -> int:
        return self.votes_up - self.votes_down


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim the ends."""
    return _SLUG_RUNS.sub("-", text.lower()).strip("-")


def language_for_type(content_type: str) -> str:
    return LANGUAGES.get(content_type, "plaintext")


def format_tags(tags: List[Any]) -> str:
    """'#a #b' from tag names or {'name': ...} objects."""
    names = []
    for tag in tags or []:
        if isinstance(tag, str) and tag:
            names.append(tag)
        elif isinstance(tag, dict) and tag.get("name"):
            names.append(str(tag["name"]))
    return " ".join(f"#{name}" for name in names)


def _fence(language: str, body: str) -> str:
    return f"```{language}\n{body}\n```"


def _created(value: Optional[str]) -> str:
    if not value:
        return "unknown"
    # ISO timestamp; the date part is enough
    return value.split("T", 1)[0]


# ----------------------------------------------------------------------
# Search and detail views
# ----------------------------------------------------------------------

def format_search_result(pattern: PatternView) -> str:
    lines = [
        f"{pattern.icon} **{pattern.title}**",
        f"   Author: @{pattern.author} | Type: {pattern.type} | ⭐ {pattern.net_votes} votes",
        f"   {pattern.description}",
    ]
    tags = format_tags(pattern.tags)
    if tags:
        lines.append(f"   Tags: {tags}")
    lines.append(f"   💬 Install: `install pattern {pattern.id} from {PREFIX}` or use slug: {pattern.slug}")
    return "\n".join(lines)


def format_search_results(query: str, patterns: List[PatternView]) -> str:
    if not patterns:
        return (
            f'No patterns found for "{query}".\n\n'
            "💡 Try:\n"
            "• Different keywords\n"
            f"• Browse at {SITE_URL}\n"
            "• Submit your own pattern"
        )
    body = "\n\n".join(format_search_result(p) for p in patterns)
    return f'Found {len(patterns)} patterns for "{query}":\n\n{body}\n\n💡 Use pattern ID or slug to install.'


def format_pattern_details(pattern: PatternView) -> str:
    preview = pattern.content[:PREVIEW_CHARS]
    if len(pattern.content) > PREVIEW_CHARS:
        preview += "..."

    lines = [
        f"{pattern.icon} **{pattern.title}** (ID: {pattern.id})",
        f"Author: @{pattern.author} | Type: {pattern.type}",
        f"Votes: ⭐ {pattern.net_votes} ({pattern.votes_up} up, {pattern.votes_down} down)",
        f"Created: {_created(pattern.created_at)}",
    ]
    tags = format_tags(pattern.tags)
    if tags:
        lines.append(f"Tags: {tags}")
    lines += [
        f"\nDescription: {pattern.description}",
        "\n**Content Preview:**",
        _fence(language_for_type(pattern.type), preview),
        f"\n💬 To install: `install pattern {pattern.id} from {PREFIX}`",
        f"Slug: {pattern.slug}",
    ]
    return "\n".join(lines)


# ----------------------------------------------------------------------
# Installation
# ----------------------------------------------------------------------

def hook_event(pattern: PatternView) -> str:
    """Guess the git event a hook belongs to from its content."""
    content = pattern.content.lower()
    if "commit" in content:
        return "post-commit"
    if "push" in content:
        return "pre-push"
    if "pull" in content:
        return "post-pull"
    return "post-commit"


def manifest_entry(pattern: PatternView, installed: date, files: List[str]) -> str:
    entry = {
        pattern.slug: {
            "id": pattern.id,
            "type": pattern.type,
            "version": PATTERN_VERSION,
            "installed": f"{installed.isoformat()}T00:00:00Z",
            "files": files,
        }
    }
    return _fence("json", json.dumps(entry, indent=2, ensure_ascii=False))


def claude_md_block(pattern: PatternView, installed: date, with_version: bool = True) -> str:
    stamp = f"Installed: {installed.isoformat()} | Author: @{pattern.author}"
    if with_version:
        stamp += f" | Version: {PATTERN_VERSION}"
    return "\n".join([
        f"<!-- BEGIN {PREFIX.upper()}: {pattern.slug} (ID: {pattern.id}) -->",
        f"<!-- {stamp} -->",
        pattern.content,
        f"<!-- END {PREFIX.upper()}: {pattern.slug} -->",
    ])


def hook_entry(pattern: PatternView) -> Dict[str, Any]:
    return {
        "id": f"{PREFIX}-{pattern.id}",
        "command": pattern.content,
        "description": pattern.title,
    }


def agent_path(pattern: PatternView) -> str:
    return f".claude/agents/{PREFIX}-{pattern.slug}.yaml"


def command_path(pattern: PatternView) -> str:
    return f".claude/commands/{PREFIX}-{pattern.slug}.md"


def prompt_path(pattern: PatternView) -> str:
    return f".claude/prompts/{PREFIX}-{pattern.slug}.md"


def prompt_instructions(pattern: PatternView, installed: date, strategy: str) -> str:
    return f"""{pattern.icon} **"{pattern.title}" Prompt**

**APPLY THIS METHODOLOGY IMMEDIATELY TO CURRENT CONTEXT:**

{pattern.content}

**Instructions for Claude:**
- Apply the above methodology to whatever task, problem, or context we were just discussing
- Follow the structure and approach outlined in the pattern
- Do not just acknowledge the pattern; actively use it to address the current situation
- If no current context exists, ask the user what they want you to apply this methodology to

**Optional:** Would you like me to save this for future reference?
If yes, I'll create: `{prompt_path(pattern)}`"""


def claude_md_instructions(pattern: PatternView, installed: date, strategy: str) -> str:
    return f"""{pattern.icon} **Installing "{pattern.title}" instructions**

I'll add this pattern to your CLAUDE.md file.

**Step 1: Check existing CLAUDE.md**
I'll verify if CLAUDE.md exists and check for any existing {PREFIX} patterns.

**Step 2: Write pattern to CLAUDE.md**
Strategy: {strategy}
{STRATEGY_STEPS[strategy]}
{_fence("markdown", claude_md_block(pattern, installed))}

**Step 3: Update manifest**
File: `{MANIFEST_PATH}`
{manifest_entry(pattern, installed, ["CLAUDE.md"])}

I'll now create/update these files for you."""


def agent_instructions(pattern: PatternView, installed: date, strategy: str) -> str:
    path = agent_path(pattern)
    header = "\n".join([
        f"# Pattern Hub Pattern: {pattern.id}",
        f"# Title: {pattern.title}",
        f"# Installed: {installed.isoformat()}",
        f"# Source: {SITE_URL}/patterns/{pattern.id}",
    ])
    body = header + "\n\n" + pattern.content
    registration = {
        f"{PREFIX}-{pattern.slug}": {
            "type": "subagent",
            "description": pattern.description,
            "config": path,
        }
    }
    return f"""{pattern.icon} **Installing "{pattern.title}" agent package**

This will add a new agent capability to your Claude Code environment.

**Step 1: Create agent definition**
File: `{path}`
{_fence("yaml", body)}

**Step 2: Register agent in configuration**
File: `{CONFIG_PATH}`
Add to "agents" section:
{_fence("json", json.dumps(registration, indent=2, ensure_ascii=False))}

**Step 3: Update manifest**
{manifest_entry(pattern, installed, [path])}

I'll create these files now.

{RESTART_NOTICE}
3. Use your new agent: `delegate to {PREFIX}-{pattern.slug}`"""


def command_instructions(pattern: PatternView, installed: date, strategy: str) -> str:
    path = command_path(pattern)
    header = "\n".join([
        f"<!-- Pattern Hub Pattern: {pattern.id} -->",
        f"<!-- Title: {pattern.title} -->",
        f"<!-- Installed: {installed.isoformat()} -->",
    ])
    body = header + "\n\n" + pattern.content
    registration = {pattern.slug: {"description": pattern.description, "file": path}}
    return f"""{pattern.icon} **Installing "{pattern.title}" command**

This will add a new slash command to your Claude Code environment.

**Step 1: Create command file**
File: `{path}`
{_fence("markdown", body)}

**Step 2: Register command in configuration**
File: `{CONFIG_PATH}`
Add to "commands" section:
{_fence("json", json.dumps(registration, indent=2, ensure_ascii=False))}

**Step 3: Update manifest**
{manifest_entry(pattern, installed, [path])}

I'll create these files now.

{RESTART_NOTICE}
3. Use your command: `/{pattern.slug}`"""


def hook_instructions(pattern: PatternView, installed: date, strategy: str) -> str:
    event = hook_event(pattern)
    return f"""{pattern.icon} **Installing "{pattern.title}" hook**

This will add an automated trigger to your Claude Code environment.

**Step 1: Update hooks configuration**
File: `{SETTINGS_PATH}`
Add to "hooks.{event}" array:
{_fence("json", json.dumps(hook_entry(pattern), indent=2, ensure_ascii=False))}

**Step 2: Update manifest**
{manifest_entry(pattern, installed, [SETTINGS_PATH])}

I'll update the settings file now.

{RESTART_NOTICE}
3. Hook will trigger automatically on: {event}"""


INSTALLERS = {
    "prompt": prompt_instructions,
    "claude_md": claude_md_instructions,
    "agent": agent_instructions,
    "command": command_instructions,
    "hook": hook_instructions,
}


def dry_run_preview(pattern: PatternView, installed: date, strategy: str) -> str:
    lines = [
        f'{pattern.icon} **Preview Mode** - "{pattern.title}"',
        "",
        f"This would install a {pattern.type} pattern.",
        "",
    ]

    if pattern.type == "claude_md":
        lines += [
            "📁 Would write to: CLAUDE.md",
            f"📝 Strategy: {strategy}",
            "",
            "**Content to add:**",
            _fence("markdown", claude_md_block(pattern, installed, with_version=False)),
        ]
    elif pattern.type == "agent":
        lines += [
            f"📁 Would create: {agent_path(pattern)}",
            f"📝 Would update: {CONFIG_PATH}",
            "⚠️ Restart required after installation",
            "",
            "**Agent configuration:**",
            _fence("yaml", f"# Pattern Hub Pattern: {pattern.id}\n# {pattern.title}\n{pattern.content}"),
        ]
    elif pattern.type == "prompt":
        lines += [
            "💬 This prompt would be applied immediately to your current work.",
            f"📁 Optionally save to: {prompt_path(pattern)}",
            "",
            "**Prompt content:**",
            _fence("markdown", pattern.content),
        ]
    elif pattern.type == "command":
        lines += [
            f"📁 Would create: {command_path(pattern)}",
            f"📝 Would update: {CONFIG_PATH}",
            "⚠️ Restart required after installation",
            "",
            "**Command content:**",
            _fence("markdown", pattern.content),
        ]
    elif pattern.type == "hook":
        lines += [
            f"📝 Would update: {SETTINGS_PATH}",
            "⚠️ Restart required after installation",
            "",
            "**Hook configuration:**",
            _fence("json", json.dumps(hook_entry(pattern), indent=2, ensure_ascii=False)),
        ]

    lines += ["", "Run without `dry_run: true` to actually install."]
    return "\n".join(lines)


def install_instructions(
    pattern: PatternView,
    dry_run: bool = False,
    strategy: str = "append",
    installed: Optional[date] = None,
) -> Optional[str]:
    """Instructions for installing `pattern`, or None for an unknown type."""
    installed = installed or date.today()
    if dry_run:
        return dry_run_preview(pattern, installed, strategy)
    installer = INSTALLERS.get(pattern.type)
    if installer is None:
        return None
    return installer(pattern, installed, strategy)
