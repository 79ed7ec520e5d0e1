"""Tests for BaseTool helpers."""

import json

import pytest

from pattern_hub import __version__
from pattern_hub.mcp_types import MCPErrorCode, ToolCategory, ToolError
from pattern_hub.tools.base import BaseTool


class SampleTool(BaseTool):

    @property
    def name(self):
        return "sample"

    @property
    def description(self):
        return "Sample tool"

    @property
    def inputSchema(self):
        return {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "count": {"type": "integer", "minimum": 1},
                "mode": {"type": "string", "enum": ["fast", "slow"]},
                "flag": {"type": "boolean"},
                "items": {"type": "array"},
            },
            "required": ["name"],
        }

    async def execute(self, input, context):
        raise NotImplementedError


@pytest.fixture
def tool(logger):
    return SampleTool(logger)


class TestMetadata:
    """Test default metadata."""

    def test_defaults(self, tool):
        assert tool.metadata.category == ToolCategory.PATTERN
        assert tool.metadata.version == __version__
        assert tool.metadata.rateLimited is False

    def test_override(self, logger):
        tool = SampleTool(logger, {'category': ToolCategory.UTILITY, 'rateLimited': True})

        assert tool.metadata.category == ToolCategory.UTILITY
        assert tool.metadata.rateLimited is True


class TestValidateInput:
    """Test BaseTool.validateInput."""

    def test_valid(self, tool):
        result = tool.validateInput({"name": "x", "count": 2, "mode": "fast", "flag": False, "items": []})

        assert result.valid
        assert result.errors == []

    def test_missing_required(self, tool):
        result = tool.validateInput({})

        assert not result.valid
        assert result.errors[0].code == "MISSING_REQUIRED_FIELD"

    def test_null_required(self, tool):
        assert not tool.validateInput({"name": None}).valid

    @pytest.mark.parametrize("field,value,message", [
        ("name", 3, "Field 'name' must be a string"),
        ("count", "2", "Field 'count' must be an integer"),
        ("count", True, "Field 'count' must be an integer"),
        ("flag", 1, "Field 'flag' must be a boolean"),
        ("items", "a,b", "Field 'items' must be an array"),
        ("mode", "medium", "Field 'mode' must be one of: fast, slow"),
        ("count", 0, "Field 'count' must be at least 1"),
    ])
    def test_invalid(self, tool, field, value, message):
        result = tool.validateInput({"name": "x", field: value})

        assert [e.message for e in result.errors] == [message]

    def test_unknown_fields_ignored(self, tool):
        assert tool.validateInput({"name": "x", "extra": object()}).valid


class TestResults:
    """Test the result helpers."""

    def test_success_text(self, tool):
        result = tool.createSuccessResult("  done \n")

        assert result.content[0].text == "done"
        assert result.isError is False

    def test_success_data(self, tool):
        result = tool.createSuccessResult({"b": 1, "a": ["é"]})

        assert json.loads(result.content[0].text) == {"b": 1, "a": ["é"]}
        assert "é" in result.content[0].text

    def test_error_from_tool_error(self, tool):
        result = tool.createErrorResult(ToolError(code=MCPErrorCode.INTERNAL_ERROR, message="bad"))

        assert result.isError
        assert result.content[0].text == "bad"

    def test_error_from_code(self, tool):
        assert tool.createErrorResult(MCPErrorCode.INTERNAL_ERROR, "worse").content[0].text == "worse"

    def test_fail(self, tool):
        result = tool.fail(MCPErrorCode.VALIDATION_ERROR, "nope", details="ctx")

        assert not result.success
        assert result.error == ToolError(code=MCPErrorCode.VALIDATION_ERROR, message="nope", details="ctx")
        assert result.result.content[0].text == "nope"

    def test_invalid_input_joins_messages(self, tool):
        result = tool.invalidInput(tool.validateInput({"count": 0}))

        assert result.error.code == MCPErrorCode.INVALID_INPUT
        assert result.error.message == "Required field 'name' is missing; Field 'count' must be at least 1"

    @pytest.mark.asyncio
    async def test_handle_error(self, tool, mock_context, logger):
        result = await tool.handleError(RuntimeError("boom"), mock_context)

        assert result.error.code == MCPErrorCode.TOOL_EXECUTION_ERROR
        assert result.error.details == "RuntimeError"
        logger.error.assert_called_once()

    def test_log_execution(self, tool, mock_context, logger):
        tool.logExecution({}, mock_context, True)

        logger.debug.assert_called_once_with("Tool executed: sample", extra={
            'tool': 'sample',
            'success': True,
            'userId': 'test_user',
            'requestId': 'test_req_123',
        })
