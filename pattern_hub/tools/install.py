"""
Install Tool

Turn a pattern into step-by-step installation instructions for the
assistant to carry out in the user's project.
"""

from typing import Any, Dict, Optional

import httpx

from pattern_hub.mcp_types import MCPErrorCode, ToolCategory, ToolContext, ToolHandlerResult, ToolInput
from pattern_hub.tools.api_client import PatternAPIClient, PatternAPIError, PatternNotFound
from pattern_hub.tools.base import BaseTool
from pattern_hub.tools.formatting import PREFIX, STRATEGIES, PatternView, install_instructions
from pattern_hub.tools.get import PATTERN_ID_SCHEMA
from pattern_hub.utils import Logger


class InstallTool(BaseTool):

    def __init__(self, logger: Logger, client: Optional[PatternAPIClient] = None):
        super().__init__(logger, {'category': ToolCategory.PATTERN})
        self.client = client or PatternAPIClient()

    @property
    def name(self) -> str:
        return "install_pattern"

    @property
    def description(self) -> str:
        return """Install a Pattern Hub pattern into the current project.

What happens depends on the pattern type:
- prompt: applied immediately to the current work, optionally saved under .claude/prompts/
- claude_md: written to CLAUDE.md between BEGIN/END markers (see strategy)
- agent: .claude/agents/<slug>.yaml plus a registration in .claude/claude.json
- command: .claude/commands/<slug>.md plus a registration in .claude/claude.json
- hook: an entry in .claude/settings.json

Every install is recorded in the .claude manifest. Use dry_run to preview."""

    @property
    def inputSchema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "pattern_id": PATTERN_ID_SCHEMA,
                "dry_run": {
                    "type": "boolean",
                    "default": False,
                    "description": "Preview changes without applying"
                },
                "strategy": {
                    "type": "string",
                    "enum": list(STRATEGIES),
                    "default": "append",
                    "description": "How to handle existing content (for claude_md type)"
                },
            },
            "required": ["pattern_id"]
        }

    async def execute(self, input: ToolInput, context: ToolContext) -> ToolHandlerResult:
        validation = self.validateInput(input)
        if not validation.valid:
            self.logExecution(input, context, False)
            return self.invalidInput(validation)

        pattern_id = input["pattern_id"]
        dry_run = bool(input.get("dry_run", False))
        strategy = input.get("strategy") or "append"

        try:
            item = await self.client.get_item(pattern_id)
        except PatternNotFound:
            self.logExecution(input, context, False)
            return self.fail(
                MCPErrorCode.RESOURCE_NOT_FOUND,
                f"❌ Pattern {pattern_id} not found.\n\nSearch for patterns first:\n`search for [topic] on {PREFIX}`",
            )
        except PatternAPIError as e:
            self.logger.warning(f"Install fetch failed: {e}", extra={"pattern_id": pattern_id})
            self.logExecution(input, context, False)
            return self.fail(MCPErrorCode.UPSTREAM_ERROR, f"❌ Failed to fetch pattern: {e.reason}")
        except httpx.RequestError as e:
            self.logger.error(f"Install request error: {e}", extra={"pattern_id": pattern_id})
            self.logExecution(input, context, False)
            return self.fail(MCPErrorCode.INTERNAL_ERROR, f"❌ Installation failed: {e}")

        pattern = PatternView.from_api(item)
        instructions = install_instructions(pattern, dry_run=dry_run, strategy=strategy)
        if instructions is None:
            self.logExecution(input, context, False)
            return self.fail(MCPErrorCode.VALIDATION_ERROR, f"❌ Unknown pattern type: {pattern.type}")

        self.logger.info(
            "Install instructions generated",
            extra={"pattern_id": pattern_id, "type": pattern.type, "dry_run": dry_run, "strategy": strategy},
        )
        self.logExecution(input, context, True)
        return ToolHandlerResult(success=True, result=self.createSuccessResult(instructions))
