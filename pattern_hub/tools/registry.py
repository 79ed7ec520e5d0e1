"""
Tool Registry
Manages tool registration, discovery, and execution.
"""

import itertools
import time
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

from mcp.types import Tool as MCPTool

from pattern_hub.mcp_types import (
    ToolHandler, ToolContext, ToolError, ToolExecution, ToolExecutionResult,
    MCPErrorCode, ToolRateLimit, ToolMetrics
)
from pattern_hub.tools.base import BaseTool


class ToolRegistry:
    """Tool Registry Implementation."""

    def __init__(self, logger, clock=time.monotonic):
        self.logger = logger
        self.clock = clock
        self.tools: Dict[str, BaseTool] = {}
        self.handlers: Dict[str, ToolHandler] = {}
        self.rateLimits: Dict[str, ToolRateLimit] = {}
        self.metrics: Dict[str, ToolMetrics] = {}
        self._ids = itertools.count(1)

    def register(self, tool: BaseTool) -> None:
        """Register a tool and route calls to its execute method."""
        if tool.name in self.tools:
            raise ValueError(f"Tool {tool.name} is already registered")

        self.tools[tool.name] = tool
        self.handlers[tool.name] = tool.execute
        self.logger.info(f"Tool registered: {tool.name}")

    def registerHandler(self, toolName: str, handler: ToolHandler) -> None:
        """Replace the handler of a registered tool."""
        if toolName not in self.tools:
            raise ValueError(f"Tool {toolName} not found in registry")

        self.handlers[toolName] = handler
        self.logger.debug(f"Tool handler registered: {toolName}")

    def unregister(self, toolName: str) -> bool:
        removed = toolName in self.tools
        if removed:
            del self.tools[toolName]
            self.handlers.pop(toolName, None)
            self.rateLimits.pop(toolName, None)
            self.logger.info(f"Tool unregistered: {toolName}")
        return removed

    def get(self, toolName: str) -> Optional[BaseTool]:
        return self.tools.get(toolName)

    def listTools(self) -> List[BaseTool]:
        return list(self.tools.values())

    def hasTool(self, toolName: str) -> bool:
        return toolName in self.tools

    async def execute(self, toolName: str, input: Dict[str, Any], context: ToolContext) -> ToolExecutionResult:
        """Run a tool, recording the call. Unknown tools raise ValueError."""
        if toolName not in self.tools:
            raise ValueError(f"Tool {toolName} not found")
        handler = self.handlers[toolName]

        started = self.clock()
        execution = ToolExecution(
            id=f"exec_{next(self._ids)}",
            toolName=toolName,
            input=input,
            context=context,
            startTime=_now_iso(),
            status='running'
        )

        if not self._checkRateLimit(toolName):
            execution.status = 'failed'
            execution.error = ToolError(
                code=MCPErrorCode.RATE_LIMIT_EXCEEDED,
                message=f"Rate limit exceeded for {toolName}"
            )
            self._finish(execution, started)
            return ToolExecutionResult(execution=execution, success=False, error=execution.error)

        try:
            result = await handler(input, context)
        except Exception as error:
            self.logger.error(f"Tool {toolName} raised: {error}")
            execution.status = 'failed'
            execution.error = ToolError(
                code=MCPErrorCode.TOOL_EXECUTION_ERROR,
                message=str(error)
            )
            self._finish(execution, started)
            return ToolExecutionResult(execution=execution, success=False, error=execution.error)

        execution.status = 'completed' if result.success else 'failed'
        execution.result = result.result
        execution.error = result.error
        self._finish(execution, started)

        return ToolExecutionResult(
            execution=execution,
            success=result.success,
            result=result.result,
            error=result.error
        )

    def getToolSchemas(self) -> List[MCPTool]:
        """Tool definitions for the MCP tools/list response."""
        return [
            MCPTool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.inputSchema
            )
            for tool in self.listTools()
        ]

    def setRateLimit(self, toolName: str, maxRequests: int, windowMs: int) -> None:
        self.rateLimits[toolName] = ToolRateLimit(
            toolName=toolName,
            maxRequests=maxRequests,
            windowMs=windowMs,
            currentRequests=0,
            resetTime=self.clock() + windowMs / 1000
        )

    def getMetrics(self, toolName: str) -> ToolMetrics:
        return self.metrics.get(toolName) or ToolMetrics(toolName=toolName)

    def getAllMetrics(self) -> Dict[str, ToolMetrics]:
        return dict(self.metrics)

    def _finish(self, execution: ToolExecution, started: float) -> None:
        execution.endTime = _now_iso()
        execution.duration = int((self.clock() - started) * 1000)

        metrics = self.metrics.setdefault(execution.toolName, ToolMetrics(toolName=execution.toolName))
        metrics.totalExecutions += 1
        metrics.lastExecutionTime = execution.startTime
        if execution.status == 'completed':
            metrics.successfulExecutions += 1
        else:
            metrics.failedExecutions += 1
        total_time = metrics.averageExecutionTime * (metrics.totalExecutions - 1) + execution.duration
        metrics.averageExecutionTime = total_time / metrics.totalExecutions

    def _checkRateLimit(self, toolName: str) -> bool:
        rateLimit = self.rateLimits.get(toolName)
        if not rateLimit:
            return True

        now = self.clock()
        if now > rateLimit.resetTime:
            rateLimit.currentRequests = 0
            rateLimit.resetTime = now + (rateLimit.windowMs / 1000)

        if rateLimit.currentRequests >= rateLimit.maxRequests:
            self.logger.warning(f"Rate limit exceeded for tool {toolName}")
            return False

        rateLimit.currentRequests += 1
        return True


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
