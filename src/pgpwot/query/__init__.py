"""
pgpwot Query - Path search and authentication over a trust network.

This module provides:
- Query: backward propagation plus augmentation until a trust amount is met
- ResidualNetwork: per-query caps and suppression over a Network
- Path, Paths, PathItem: authenticated walks and their amounts
- Cost, PairPriorityQueue: Dijkstra ordering
"""

from pgpwot.query.cost import Cost, PairPriorityQueue
from pgpwot.query.path import Path, PathItem, Paths
from pgpwot.query.residual import ResidualNetwork
from pgpwot.query.query import Query

__all__ = [
    "Cost",
    "PairPriorityQueue",
    "Path",
    "PathItem",
    "Paths",
    "ResidualNetwork",
    "Query",
]
