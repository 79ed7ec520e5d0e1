"""
Logger
Structured logging for the Pattern Hub API and MCP server.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _level(level: str) -> int:
    return getattr(logging, level.upper(), logging.DEBUG)


class Logger:
    """Simple logger wrapper with structured logging support.

    Always writes to stderr: stdout belongs to the MCP stdio transport.
    """

    def __init__(self, name: str = "pattern-hub", level: str = "DEBUG"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_level(level))

        # Only add handler if none exist
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(_level(level))
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self.logger.addHandler(handler)

    def debug(self, message: str, extra: Optional[dict] = None):
        self.logger.debug(message, extra=extra)

    def info(self, message: str, extra: Optional[dict] = None):
        self.logger.info(message, extra=extra)

    def warning(self, message: str, extra: Optional[dict] = None):
        self.logger.warning(message, extra=extra)

    def error(self, message: str, extra: Optional[dict] = None):
        self.logger.error(message, extra=extra)

    def exception(self, message: str, extra: Optional[dict] = None):
        """Log at ERROR with the active exception's traceback."""
        self.logger.exception(message, extra=extra)

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)
