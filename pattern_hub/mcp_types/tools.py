"""
Tool-related types
Types shared by the pattern tools and the registry that runs them.
"""

from typing import Dict, Any, List, Optional, Callable, Awaitable
from dataclasses import dataclass, field
from enum import Enum


class ToolCategory(Enum):
    """Tool categories for organization."""
    PATTERN = "pattern"     # Pattern discovery and installation
    UTILITY = "utility"     # Utilities


class MCPErrorCode(Enum):
    """MCP Error codes."""
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"


@dataclass
class TextContent:
    """Text content for tool results."""
    type: str
    text: str


class ToolInput(dict):
    """Tool arguments as passed by the client, with attribute access."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        for key, value in kwargs.items():
            setattr(self, key, value)


@dataclass
class ToolContext:
    """Tool execution context."""
    userId: str
    requestId: str
    timestamp: float
    toolName: Optional[str] = None


@dataclass
class ToolResult:
    """Tool execution result."""
    content: List[TextContent]
    isError: bool = False


@dataclass
class ToolError:
    """Tool error information."""
    code: MCPErrorCode
    message: str
    details: Optional[str] = None


@dataclass
class ToolHandlerResult:
    """Tool handler result."""
    success: bool
    result: Optional[ToolResult] = None
    error: Optional[ToolError] = None


@dataclass
class ToolMetadata:
    """Tool metadata."""
    category: ToolCategory
    version: str
    rateLimited: bool = False
    description: Optional[str] = None


@dataclass
class ToolValidationError:
    field: str
    message: str
    code: str


@dataclass
class ToolValidationResult:
    valid: bool
    errors: List[ToolValidationError] = field(default_factory=list)


@dataclass
class ToolExecution:
    """Record of a single tool call."""
    id: str
    toolName: str
    input: Dict[str, Any]
    context: ToolContext
    startTime: str
    status: str
    endTime: Optional[str] = None
    duration: Optional[int] = None
    result: Optional[ToolResult] = None
    error: Optional[ToolError] = None


@dataclass
class ToolExecutionResult:
    execution: ToolExecution
    success: bool
    result: Optional[ToolResult] = None
    error: Optional[ToolError] = None


@dataclass
class ToolRateLimit:
    """Per-tool call budget."""
    toolName: str
    maxRequests: int
    windowMs: int
    currentRequests: int
    resetTime: float


@dataclass
class ToolMetrics:
    """Tool execution metrics."""
    toolName: str
    totalExecutions: int = 0
    successfulExecutions: int = 0
    failedExecutions: int = 0
    averageExecutionTime: float = 0
    lastExecutionTime: Optional[str] = None

    @property
    def errorRate(self) -> float:
        if not self.totalExecutions:
            return 0
        return self.failedExecutions / self.totalExecutions


# Type alias for tool handlers
ToolHandler = Callable[[Dict[str, Any], ToolContext], Awaitable[ToolHandlerResult]]
