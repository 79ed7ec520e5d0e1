#!/usr/bin/env python3
"""
Pattern Hub CLI Entry Point

Subcommands:
- api: run the HTTP API
- mcp: run the MCP server over stdio
"""

import argparse
import sys
from typing import List, Optional

from pattern_hub import __version__, __package_name__


def print_version():
    print(f"{__package_name__} {__version__}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pattern-hub",
        description="Pattern Hub - a moderated registry of Claude Code patterns",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  pattern-hub api               Run the HTTP API on HTTP_PORT (default 8000)
  pattern-hub api --port 3000   Run the HTTP API on port 3000
  pattern-hub mcp               Run the MCP server over stdio

MCP Configuration (.mcp.json):

  {
    "mcpServers": {
      "pattern-hub": {
        "command": "pattern-hub",
        "args": ["mcp"]
      }
    }
  }
"""
    )
    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version and exit"
    )

    subparsers = parser.add_subparsers(dest="command")

    api = subparsers.add_parser("api", help="Run the HTTP API")
    api.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="HTTP port (default: HTTP_PORT or 8000)"
    )
    api.add_argument(
        "--host",
        default="0.0.0.0",
        help="Bind address (default: 0.0.0.0)"
    )

    subparsers.add_parser("mcp", help="Run the MCP server over stdio")
    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print_version()
        sys.exit(0)

    if args.command == "api":
        import asyncio
        from pattern_hub.api.app import serve
        asyncio.run(serve(args.port, args.host))
    elif args.command == "mcp":
        from pattern_hub.server import main as mcp_main
        mcp_main()
    else:
        parser.print_help()
        sys.exit(2)


if __name__ == "__main__":
    main()
