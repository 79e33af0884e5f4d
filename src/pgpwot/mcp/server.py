#!/usr/bin/env python3
"""
pgpwot MCP Server - Web of Trust tools for MCP clients.

Provides Web of Trust authentication via MCP, enabling clients to:
- Authenticate a certificate/user ID binding
- Identify the authenticated user IDs of a certificate
- List or look up authenticated bindings
- Check a caller supplied path
- Inspect network statistics

Architecture:
    This server wraps the WebOfTrust API for MCP access. It uses lazy
    initialization: the network description is only read and parsed on
    the first tool call, not on server startup.

Configuration (constructor arguments override the environment):
    WOT_NETWORK_FILE: path to a network description (see pgpwot.dsl)
    WOT_TRUST_ROOTS: comma separated "FINGERPRINT[:AMOUNT]" roots, added
        to the roots declared in the description
    WOT_TRUST_AMOUNT: amount needed for a binding to be acceptable (120)
    WOT_CERTIFICATION_NETWORK: "1"/"true" to treat all signatures as delegations

Usage:
    # Run as MCP server (stdio transport)
    python -m pgpwot.mcp

    # Configure in an MCP client:
    {
        "mcpServers": {
            "pgpwot": {
                "command": "python3",
                "args": ["-m", "pgpwot.mcp"],
                "env": {"WOT_NETWORK_FILE": "/path/to/network.wot"}
            }
        }
    }
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional

from pgpwot.api.wot import AuthenticationLevel, WebOfTrust
from pgpwot.dsl.parser import NetworkDescription, NetworkParser
from pgpwot.exceptions import NetworkParseError
from pgpwot.export.text import format_result
from pgpwot.network.roots import Root, Roots

logger = logging.getLogger(__name__)

# MCP Protocol version
PROTOCOL_VERSION = "2024-11-05"

TRUE_VALUES = ("1", "true", "yes", "on")


class WotMCPServer:
    """
    MCP Server for Web of Trust queries.

    Uses lazy initialization - the network is only loaded on first tool
    call, not on server startup.
    """

    def __init__(
        self,
        network_file: Optional[Path] = None,
        trust_roots: Optional[str] = None,
        trust_amount: Optional[int] = None,
        certification_network: Optional[bool] = None,
        description: Optional[NetworkDescription] = None,
    ):
        """
        Initialize the Web of Trust MCP server.

        Args:
            network_file: network description file (default: $WOT_NETWORK_FILE)
            trust_roots: extra roots as "FPR[:AMOUNT],..." (default: $WOT_TRUST_ROOTS)
            trust_amount: amount for acceptable bindings (default: $WOT_TRUST_AMOUNT or 120)
            certification_network: certification network mode
                (default: $WOT_CERTIFICATION_NETWORK)
            description: already parsed network, skips reading network_file
        """
        file_name = network_file or os.environ.get("WOT_NETWORK_FILE")
        self._network_file = Path(file_name) if file_name else None
        self._trust_roots = trust_roots if trust_roots is not None else os.environ.get("WOT_TRUST_ROOTS", "")
        self._trust_amount = trust_amount if trust_amount is not None else int(
            os.environ.get("WOT_TRUST_AMOUNT", AuthenticationLevel.FULLY))
        if self._trust_amount <= 0:
            raise ValueError(f"Trust amount must be positive, got {self._trust_amount}")
        if certification_network is None:
            certification_network = os.environ.get(
                "WOT_CERTIFICATION_NETWORK", "").lower() in TRUE_VALUES
        self._certification_network = certification_network

        # Lazy-loaded instances
        self._description = description
        self._wot = None

        # Tool registry
        self._tools = self._build_tool_registry()

    def _get_description(self):
        """Get or load the network description."""
        if self._description is None:
            if self._network_file is None:
                return None, {"error": "No network configured. Set WOT_NETWORK_FILE."}
            try:
                text = self._network_file.read_text(encoding="utf-8")
            except OSError as e:
                return None, {"error": f"Failed to read network file: {e}"}
            try:
                self._description = NetworkParser().parse(text)
            except NetworkParseError as e:
                return None, e.to_dict()
            logger.info("Loaded network from %s", self._network_file)
        return self._description, None

    def _get_wot(self):
        """Get or initialize the WebOfTrust instance."""
        if self._wot is None:
            description, error = self._get_description()
            if error:
                return None, error
            try:
                extra = Roots.parse(self._trust_roots)
            except ValueError as e:
                return None, {"error": f"Invalid WOT_TRUST_ROOTS: {e}"}
            roots = Roots(list(description.roots) + list(extra))
            self._wot = WebOfTrust(
                description.network,
                roots,
                certification_network=self._certification_network,
                trust_amount=self._trust_amount,
            )
        return self._wot, None

    # Tool implementations

    def _tool_authenticate(self, fingerprint: str, user_id: str, email: bool = False) -> dict:
        """Authenticate a binding."""
        wot, error = self._get_wot()
        if error:
            return error

        result = wot.authenticate(fingerprint, user_id, email=email)
        response = result.to_dict()
        response["text"] = format_result(result)
        return response

    def _tool_identify(self, fingerprint: str) -> dict:
        """Authenticated user IDs of a certificate."""
        wot, error = self._get_wot()
        if error:
            return error

        result = wot.identify(fingerprint)
        response = result.to_dict()
        response["fingerprint"] = fingerprint
        response["text"] = format_result(result)
        return response

    def _tool_list(self) -> dict:
        """All authenticated bindings."""
        wot, error = self._get_wot()
        if error:
            return error

        result = wot.list()
        response = result.to_dict()
        response["count"] = len(result)
        return response

    def _tool_lookup(self, user_id: str, email: bool = False) -> dict:
        """Certificates carrying a user ID."""
        wot, error = self._get_wot()
        if error:
            return error

        result = wot.lookup(user_id, email=email)
        response = result.to_dict()
        response["user_id"] = user_id
        response["count"] = len(result)
        response["text"] = format_result(result)
        return response

    def _tool_path(self, fingerprints: list, user_id: str) -> dict:
        """Check a path given as [root, ..., target]."""
        wot, error = self._get_wot()
        if error:
            return error
        if not fingerprints:
            return {"error": "A path needs at least one certificate"}

        return wot.path(fingerprints[0], fingerprints[1:], user_id).to_dict()

    def _tool_stats(self) -> dict:
        """Network statistics."""
        wot, error = self._get_wot()
        if error:
            return error

        stats = wot.network.to_dict()
        stats["roots"] = [{"fingerprint": str(r.fingerprint), "amount": r.amount} for r in wot.roots]
        stats["trust_amount"] = wot.trust_amount
        stats["certification_network"] = wot.certification_network
        return stats

    def _build_tool_registry(self) -> list[dict]:
        """Build the MCP tool registry."""
        return [
            {
                "name": "wot_authenticate",
                "description": "Authenticate a binding between a certificate fingerprint and a user ID. Returns the trust amount, the paths from the trust roots, and an sq-wot style rendering.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "fingerprint": {
                            "type": "string",
                            "description": "Fingerprint of the certificate"
                        },
                        "user_id": {
                            "type": "string",
                            "description": "User ID, or an e-mail address if email is true"
                        },
                        "email": {
                            "type": "boolean",
                            "description": "Match every user ID containing <user_id>"
                        }
                    },
                    "required": ["fingerprint", "user_id"]
                }
            },
            {
                "name": "wot_identify",
                "description": "List the user IDs of a certificate that can be authenticated.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "fingerprint": {
                            "type": "string",
                            "description": "Fingerprint of the certificate"
                        }
                    },
                    "required": ["fingerprint"]
                }
            },
            {
                "name": "wot_list",
                "description": "List every binding in the network that can be authenticated.",
                "inputSchema": {
                    "type": "object",
                    "properties": {}
                }
            },
            {
                "name": "wot_lookup",
                "description": "Find and authenticate the certificates carrying a user ID.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "user_id": {
                            "type": "string",
                            "description": "User ID, or an e-mail address if email is true"
                        },
                        "email": {
                            "type": "boolean",
                            "description": "Match every user ID containing <user_id>"
                        }
                    },
                    "required": ["user_id"]
                }
            },
            {
                "name": "wot_path",
                "description": "Check whether the given chain of certificates authenticates a user ID on the last one.",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "fingerprints": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Fingerprints from the root to the target"
                        },
                        "user_id": {
                            "type": "string",
                            "description": "User ID bound to the target"
                        }
                    },
                    "required": ["fingerprints", "user_id"]
                }
            },
            {
                "name": "wot_stats",
                "description": "Get network statistics: certificate, edge and signature counts, trust roots, reference time.",
                "inputSchema": {
                    "type": "object",
                    "properties": {}
                }
            }
        ]

    def handle_tool_call(self, name: str, arguments: dict) -> Any:
        """Handle a tool call and return result."""
        handlers: dict[str, Callable] = {
            "wot_authenticate": lambda args: self._tool_authenticate(
                args.get("fingerprint", ""),
                args.get("user_id", ""),
                bool(args.get("email", False)),
            ),
            "wot_identify": lambda args: self._tool_identify(args.get("fingerprint", "")),
            "wot_list": lambda args: self._tool_list(),
            "wot_lookup": lambda args: self._tool_lookup(
                args.get("user_id", ""),
                bool(args.get("email", False)),
            ),
            "wot_path": lambda args: self._tool_path(
                list(args.get("fingerprints", [])),
                args.get("user_id", ""),
            ),
            "wot_stats": lambda args: self._tool_stats(),
        }

        handler = handlers.get(name)
        if not handler:
            return {"error": f"Unknown tool: {name}"}
        try:
            return handler(arguments)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return {"error": f"Tool {name} failed: {e}", "tool": name}

    def handle_request(self, request: dict) -> Optional[dict]:
        """Handle a JSON-RPC request and return response."""
        method = request.get("method", "")
        params = request.get("params", {})
        req_id = request.get("id")

        if method == "initialize":
            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "result": {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {
                        "tools": {}
                    },
                    "serverInfo": {
                        "name": "pgpwot",
                        "version": "0.1.0"
                    }
                }
            }

        elif method == "tools/list":
            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "result": {
                    "tools": self._tools
                }
            }

        elif method == "tools/call":
            tool_name = params.get("name", "")
            arguments = params.get("arguments", {})

            result = self.handle_tool_call(tool_name, arguments)

            # Format as text content for MCP
            content_text = json.dumps(result, indent=2, ensure_ascii=False)

            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "result": {
                    "content": [
                        {
                            "type": "text",
                            "text": content_text
                        }
                    ],
                    "isError": isinstance(result, dict) and "error" in result
                }
            }

        elif method == "notifications/initialized":
            # No response needed for notifications
            return None

        else:
            return {
                "jsonrpc": "2.0",
                "id": req_id,
                "error": {
                    "code": -32601,
                    "message": f"Method not found: {method}"
                }
            }

    def run(self):
        """Run the MCP server (stdio transport)."""
        while True:
            try:
                line = sys.stdin.readline()
                if not line:
                    break
                request = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Ignoring malformed request line")
                continue

            response = self.handle_request(request)
            if response:
                sys.stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
                sys.stdout.flush()


def main():
    """CLI entry point for the Web of Trust MCP server."""
    logging.basicConfig(level=os.environ.get("WOT_LOG_LEVEL", "WARNING"), stream=sys.stderr)
    server = WotMCPServer()
    server.run()


if __name__ == "__main__":
    main()
