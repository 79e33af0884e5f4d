# -*- encoding: utf-8 -*-
"""
pgpwot Export Module - Rendering of authentication results.

Provides formatters for:
- sq-wot style text (terminal output)
- Graphviz DOT
- Mermaid (visualization)
- JSON, via the to_dict() methods of the result types

Usage:
    from pgpwot.export import format_result, export_dot

    print(format_result(wot.authenticate(fpr, uid)))
    dot = export_dot(wot.list())
"""

from pgpwot.export.text import (
    NO_PATHS,
    authentication_level,
    format_binding,
    format_bindings,
    format_result,
)
from pgpwot.export.graph import PathGraph, export_dot, export_mermaid

# Export format constants
FORMAT_TEXT = "text"
FORMAT_DOT = "dot"
FORMAT_MERMAID = "mermaid"
FORMAT_JSON = "json"

__all__ = [
    "NO_PATHS",
    "authentication_level",
    "format_binding",
    "format_bindings",
    "format_result",
    "PathGraph",
    "export_dot",
    "export_mermaid",
    "FORMAT_TEXT",
    "FORMAT_DOT",
    "FORMAT_MERMAID",
    "FORMAT_JSON",
]
