"""
Tools Module

The MCP tools for Pattern Hub:
- search_patterns: Find patterns in the registry
- get_pattern: Show a pattern with a content preview
- install_pattern: Installation instructions (or a dry-run preview)
"""

from .base import BaseTool
from .registry import ToolRegistry
from .api_client import PatternAPIClient, PatternAPIError, PatternNotFound

from .search import SearchTool
from .get import GetTool
from .install import InstallTool

__all__ = [
    "BaseTool",
    "ToolRegistry",
    "PatternAPIClient",
    "PatternAPIError",
    "PatternNotFound",
    "SearchTool",
    "GetTool",
    "InstallTool",
]
