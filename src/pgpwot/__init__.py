"""
pgpwot - OpenPGP Web of Trust

Authenticates <certificate, user ID> bindings against a network of
certifications and delegations, starting from a set of trust roots, and
reconstructs the paths that justify each decision.

Components:
- WebOfTrust: authenticate, identify, list, lookup and path operations
- pgpwot.network: trust graph model and loader for verified certificates
- pgpwot.query: backward propagation and path augmentation
- pgpwot.dsl: textual network descriptions
- pgpwot.export: sq-wot style text, Graphviz DOT and Mermaid output
- pgpwot.mcp: MCP server for tool integration

Usage:
    from pgpwot import WebOfTrust, parse_network

    description = parse_network(open("network.wot").read())
    wot = WebOfTrust(description.network, description.roots)

    result = wot.authenticate("C3D4...", "<bob@example.org>")
    print(result.percentage, result.acceptable)

    # Or run MCP server
    # python -m pgpwot.mcp
"""

from pgpwot.api.wot import (
    WebOfTrust,
    AuthenticationLevel,
    AuthenticationResult,
    Binding,
    BindingList,
    PathCheckResult,
)
from pgpwot.dsl.parser import NetworkDescription, parse_network
from pgpwot.network import (
    Identifier,
    Node,
    EdgeComponent,
    Network,
    NetworkBuilder,
    Root,
    Roots,
    build_network,
)
from pgpwot.query import Path, Paths, Query

__all__ = [
    # Main API
    "WebOfTrust",
    "AuthenticationLevel",
    "AuthenticationResult",
    "Binding",
    "BindingList",
    "PathCheckResult",
    # Network model
    "Identifier",
    "Node",
    "EdgeComponent",
    "Network",
    "NetworkBuilder",
    "Root",
    "Roots",
    "build_network",
    # Query
    "Query",
    "Path",
    "Paths",
    # DSL
    "NetworkDescription",
    "parse_network",
]

__version__ = "0.1.0"
