"""
pgpwot MCP Server - Model Context Protocol server for Web of Trust queries.

This module provides an MCP server that exposes pgpwot functionality to
any MCP-compatible client.

Usage:
    # Run as standalone server
    python -m pgpwot.mcp

    # Or import and use programmatically
    from pgpwot.mcp import WotMCPServer
    server = WotMCPServer(network_file="network.wot")
    server.run()
"""

from pgpwot.mcp.server import WotMCPServer, main

__all__ = ["WotMCPServer", "main"]
