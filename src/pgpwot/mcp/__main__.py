#!/usr/bin/env python3
"""
Entry point for running the pgpwot MCP server as a module.

Usage:
    python -m pgpwot.mcp
"""

from pgpwot.mcp.server import main

if __name__ == "__main__":
    main()
