"""
Base Tool Classes
Abstract base class for the pattern tools.
"""

import json
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from pattern_hub.mcp_types import (
    ToolInput, ToolResult, ToolError, ToolContext,
    ToolHandlerResult, ToolValidationResult, ToolValidationError,
    MCPErrorCode, TextContent, ToolCategory, ToolMetadata
)
from pattern_hub import __version__

_TYPE_CHECKS = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


class BaseTool(ABC):
    """Abstract base class for all tool implementations."""

    def __init__(self, logger, metadata: Optional[Dict[str, Any]] = None):
        self.logger = logger

        default_metadata = {
            'category': ToolCategory.PATTERN,
            'version': __version__,
            'rateLimited': False
        }
        if metadata:
            default_metadata.update(metadata)

        self.metadata = ToolMetadata(**default_metadata)

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description."""

    @property
    @abstractmethod
    def inputSchema(self) -> Dict[str, Any]:
        """Tool input schema (JSON Schema)."""

    @abstractmethod
    async def execute(self, input: ToolInput, context: ToolContext) -> ToolHandlerResult:
        """Execute the tool with input and context."""

    def validateInput(self, input: Dict[str, Any]) -> ToolValidationResult:
        """Check required fields, primitive types and enums against inputSchema."""
        errors = []

        for field in self.inputSchema.get('required', []):
            if input.get(field) is None:
                errors.append(ToolValidationError(
                    field=field,
                    message=f"Required field '{field}' is missing",
                    code="MISSING_REQUIRED_FIELD"
                ))

        properties = self.inputSchema.get('properties', {})
        for field, value in input.items():
            field_schema = properties.get(field)
            if field_schema is None or value is None:
                continue

            expected = field_schema.get('type')
            allowed = _TYPE_CHECKS.get(expected)
            # bool is an int subclass
            wrong_bool = isinstance(value, bool) and expected in ("integer", "number")
            if allowed and (wrong_bool or not isinstance(value, allowed)):
                errors.append(ToolValidationError(
                    field=field,
                    message=f"Field '{field}' must be a{'n' if expected[0] in 'aeiou' else ''} {expected}",
                    code="INVALID_TYPE"
                ))
                continue

            if 'enum' in field_schema and value not in field_schema['enum']:
                options = ", ".join(str(v) for v in field_schema['enum'])
                errors.append(ToolValidationError(
                    field=field,
                    message=f"Field '{field}' must be one of: {options}",
                    code="INVALID_ENUM"
                ))
            elif expected == 'integer' and 'minimum' in field_schema and value < field_schema['minimum']:
                errors.append(ToolValidationError(
                    field=field,
                    message=f"Field '{field}' must be at least {field_schema['minimum']}",
                    code="OUT_OF_RANGE"
                ))

        return ToolValidationResult(valid=not errors, errors=errors)

    def createSuccessResult(self, data: Any) -> ToolResult:
        """Wrap text (or JSON-serializable data) as a tool result."""
        if isinstance(data, str):
            text = data
        else:
            try:
                text = json.dumps(data, indent=2, default=str, ensure_ascii=False)
            except (TypeError, ValueError) as e:
                self.logger.warning(f"Failed to serialize tool result: {e}")
                text = json.dumps({"error": "Failed to serialize result"}, indent=2)

        return ToolResult(
            content=[TextContent(type="text", text=text.strip())],
            isError=False
        )

    def createErrorResult(self, error_or_code, message: Optional[str] = None) -> ToolResult:
        """Create an error tool result.

        Can be called as:
            createErrorResult(ToolError(...))
            createErrorResult(code, message)
        """
        if isinstance(error_or_code, ToolError):
            error_message = error_or_code.message
        else:
            error_message = message or str(error_or_code)

        return ToolResult(
            content=[TextContent(type="text", text=error_message)],
            isError=True
        )

    def fail(self, code: MCPErrorCode, message: str, details: Optional[str] = None) -> ToolHandlerResult:
        error = ToolError(code=code, message=message, details=details)
        return ToolHandlerResult(success=False, error=error, result=self.createErrorResult(error))

    def invalidInput(self, validation: ToolValidationResult) -> ToolHandlerResult:
        return self.fail(
            MCPErrorCode.INVALID_INPUT,
            "; ".join(e.message for e in validation.errors),
        )

    async def handleError(self, error: Exception, context: ToolContext) -> ToolHandlerResult:
        """Handle errors during tool execution."""
        self.logger.error(f"Tool execution error: {error}")
        return self.fail(MCPErrorCode.TOOL_EXECUTION_ERROR, str(error), details=type(error).__name__)

    def logExecution(self, input: Dict[str, Any], context: ToolContext, success: bool):
        """Log tool execution."""
        self.logger.debug(f"Tool executed: {self.name}", extra={
            'tool': self.name,
            'success': success,
            'userId': context.userId,
            'requestId': context.requestId
        })
