"""
pgpwot DSL - Textual network descriptions.

This module provides:
- NetworkParser: Lark-based parser producing a NetworkDescription
- NetworkDescription: parsed network and trust roots
- parse_network: convenience function
"""

from pgpwot.dsl.parser import NetworkParser, NetworkDescription, WotTransformer, parse_network
from pgpwot.dsl.grammar import get_grammar

__all__ = [
    "NetworkParser",
    "NetworkDescription",
    "WotTransformer",
    "parse_network",
    "get_grammar",
]
