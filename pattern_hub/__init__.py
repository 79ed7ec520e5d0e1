"""
Pattern Hub
Community registry for Claude Code patterns with content moderation and an MCP tool server.
"""

__version__ = "0.3.0"
__package_name__ = "pattern-hub"
