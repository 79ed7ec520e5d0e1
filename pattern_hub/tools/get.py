"""
Get Tool

Show one pattern with a preview of its content.
"""

from typing import Any, Dict, Optional

import httpx

from pattern_hub.mcp_types import MCPErrorCode, ToolCategory, ToolContext, ToolHandlerResult, ToolInput
from pattern_hub.tools.api_client import PatternAPIClient, PatternAPIError, PatternNotFound
from pattern_hub.tools.base import BaseTool
from pattern_hub.tools.formatting import PREFIX, SITE_URL, PatternView, format_pattern_details
from pattern_hub.utils import Logger

PATTERN_ID_SCHEMA = {
    "type": "integer",
    "minimum": 1,
    "description": "Pattern ID from search results"
}


def not_found_message(pattern_id: Any) -> str:
    return (
        f"❌ Pattern {pattern_id} not found.\n\n"
        f"Try searching first:\n`search for patterns on {PREFIX}`\n\n"
        f"Or browse at {SITE_URL}"
    )


class GetTool(BaseTool):
    """Pattern details: author, votes, tags and a content preview."""

    def __init__(self, logger: Logger, client: Optional[PatternAPIClient] = None):
        super().__init__(logger, {'category': ToolCategory.PATTERN})
        self.client = client or PatternAPIClient()

    @property
    def name(self) -> str:
        return "get_pattern"

    @property
    def description(self) -> str:
        return "Get details of a Pattern Hub pattern by ID, including a preview of its content."

    @property
    def inputSchema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {"pattern_id": PATTERN_ID_SCHEMA},
            "required": ["pattern_id"]
        }

    async def execute(self, input: ToolInput, context: ToolContext) -> ToolHandlerResult:
        validation = self.validateInput(input)
        if not validation.valid:
            self.logExecution(input, context, False)
            return self.invalidInput(validation)

        pattern_id = input["pattern_id"]
        try:
            item = await self.client.get_item(pattern_id)
        except PatternNotFound:
            self.logExecution(input, context, False)
            return self.fail(MCPErrorCode.RESOURCE_NOT_FOUND, not_found_message(pattern_id))
        except PatternAPIError as e:
            self.logger.warning(f"Get pattern failed: {e}", extra={"pattern_id": pattern_id})
            self.logExecution(input, context, False)
            return self.fail(MCPErrorCode.UPSTREAM_ERROR, f"❌ Failed to get pattern: {e.reason}")
        except httpx.RequestError as e:
            self.logger.error(f"Get pattern request error: {e}", extra={"pattern_id": pattern_id})
            self.logExecution(input, context, False)
            return self.fail(MCPErrorCode.INTERNAL_ERROR, f"❌ Failed to get pattern: {e}")

        self.logExecution(input, context, True)
        text = format_pattern_details(PatternView.from_api(item))
        return ToolHandlerResult(success=True, result=self.createSuccessResult(text))
