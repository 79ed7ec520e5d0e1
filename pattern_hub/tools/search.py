"""
Search Tool

Find patterns in the Pattern Hub registry.
"""

from typing import Any, Dict, Optional

import httpx

from pattern_hub.mcp_types import MCPErrorCode, ToolCategory, ToolContext, ToolHandlerResult, ToolInput
from pattern_hub.moderation import ContentType
from pattern_hub.tools.api_client import PatternAPIClient, PatternAPIError
from pattern_hub.tools.base import BaseTool
from pattern_hub.tools.formatting import SITE_URL, PatternView, format_search_results
from pattern_hub.utils import Logger

MAX_RESULTS = 10


class SearchTool(BaseTool):
    """Keyword search over titles and descriptions, best-voted first."""

    def __init__(self, logger: Logger, client: Optional[PatternAPIClient] = None):
        super().__init__(logger, {'category': ToolCategory.PATTERN})
        self.client = client or PatternAPIClient()

    @property
    def name(self) -> str:
        return "search_patterns"

    @property
    def description(self) -> str:
        return """Search the Pattern Hub registry for Claude Code patterns.

Pattern types: claude_md (project instructions), agent (subagent definitions),
prompt (reusable methodologies), hook (automation scripts), command (slash commands).

Returns up to 10 matches with author, votes, tags and the ID to pass to
get_pattern or install_pattern.

Examples:
- search_patterns("Rails testing")
- search_patterns("parallel tasks", type="agent")"""

    @property
    def inputSchema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query (e.g., 'Rails testing', 'parallel tasks')"
                },
                "type": {
                    "type": "string",
                    "enum": ContentType.values(),
                    "description": "Filter by pattern type (optional)"
                },
            },
            "required": ["query"]
        }

    async def execute(self, input: ToolInput, context: ToolContext) -> ToolHandlerResult:
        validation = self.validateInput(input)
        if not validation.valid:
            self.logExecution(input, context, False)
            return self.invalidInput(validation)

        query = input["query"].strip()
        if not query:
            return self.fail(MCPErrorCode.INVALID_INPUT, "Search query cannot be empty")

        try:
            results = await self.client.search(query, input.get("type"))
        except PatternAPIError as e:
            self.logger.warning(f"Search failed: {e}", extra={"query": query})
            self.logExecution(input, context, False)
            return self.fail(
                MCPErrorCode.UPSTREAM_ERROR,
                f"❌ Search failed: {e.reason}\n\nTry browsing patterns at {SITE_URL}",
            )
        except httpx.RequestError as e:
            self.logger.error(f"Search request error: {e}", extra={"query": query})
            self.logExecution(input, context, False)
            return self.fail(MCPErrorCode.INTERNAL_ERROR, f"❌ Search failed: {e}")

        patterns = [PatternView.from_api(r) for r in results[:MAX_RESULTS]]
        self.logExecution(input, context, True)
        return ToolHandlerResult(success=True, result=self.createSuccessResult(format_search_results(query, patterns)))
