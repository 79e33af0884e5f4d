# -*- encoding: utf-8 -*-
"""
pgpwot Network - Directed multigraph of certificates and signatures.

A Network holds the node table, the edges keyed by (issuer, target) and a
reverse index by target. It is built once through a NetworkBuilder for a
given reference time and is read-only afterwards, so it can be shared
between queries and threads.
"""

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from pgpwot.network.edge import Edge, EdgeComponent
from pgpwot.network.node import Node
from pgpwot.network.primitives import Identifier, utcnow

logger = logging.getLogger(__name__)


class Network:
    """
    Read-only trust network.

    Attributes:
        nodes: Node by Identifier
        edges: Edge by (issuer, target) Identifier pair
        reference_time: time at which the network is evaluated
    """

    def __init__(
        self,
        nodes: Mapping[Identifier, Node],
        edges: Mapping[tuple[Identifier, Identifier], Edge],
        reference_time: datetime,
    ):
        self.nodes: Mapping[Identifier, Node] = MappingProxyType(dict(nodes))
        self.edges: Mapping[tuple[Identifier, Identifier], Edge] = MappingProxyType(dict(edges))
        self.reference_time = reference_time

        forward: dict[Identifier, list[Edge]] = {}
        reverse: dict[Identifier, list[Edge]] = {}
        for (issuer, target), edge in sorted(self.edges.items(), key=lambda kv: kv[0]):
            forward.setdefault(issuer, []).append(edge)
            reverse.setdefault(target, []).append(edge)
        self._forward = forward
        self._reverse = reverse

    @classmethod
    def empty(cls, reference_time: Optional[datetime] = None) -> "Network":
        return cls({}, {}, reference_time or utcnow())

    @classmethod
    def builder(cls) -> "NetworkBuilder":
        return NetworkBuilder()

    def node(self, fingerprint) -> Optional[Node]:
        return self.nodes.get(Identifier(fingerprint))

    def edges_from(self, issuer) -> list[Edge]:
        """All edges issued by the certificate `issuer`."""
        return list(self._forward.get(Identifier(issuer), ()))

    def edges_to(self, target) -> list[Edge]:
        """All edges over data on the certificate `target`."""
        return list(self._reverse.get(Identifier(target), ()))

    def edge(self, issuer, target) -> Optional[Edge]:
        return self.edges.get((Identifier(issuer), Identifier(target)))

    @property
    def number_of_edges(self) -> int:
        return len(self.edges)

    @property
    def number_of_signatures(self) -> int:
        return sum(len(edge) for edge in self.edges.values())

    def to_dict(self) -> dict:
        return {
            "reference_time": self.reference_time.isoformat(),
            "nodes": len(self.nodes),
            "edges": self.number_of_edges,
            "signatures": self.number_of_signatures,
        }

    def __str__(self) -> str:
        lines = [f"Network with {len(self.nodes)} nodes, {self.number_of_edges} edges:"]
        for key in sorted(self.edges):
            lines.append(str(self.edges[key]))
        return "\n".join(lines)


class NetworkBuilder:
    """
    Builder for Network.

    Nodes are indexed once per identifier: the first node wins and later
    duplicates are ignored. Components accumulate into their (issuer,
    target) edge under the most-recent-wins rule.

    Usage:
        builder = NetworkBuilder()
        builder.add_node(alice).add_node(bob)
        builder.add_component(EdgeComponent.certification(alice, bob, uid, now))
        network = builder.set_reference_time(now).build()
    """

    def __init__(self):
        self.nodes: dict[Identifier, Node] = {}
        self._edges: dict[tuple[Identifier, Identifier], Edge] = {}
        self._reference_time: Optional[datetime] = None

    def add_node(self, node: Node) -> "NetworkBuilder":
        if node.fingerprint in self.nodes:
            logger.warning("Duplicate certificate %s, keeping the first one", node.fingerprint)
            return self
        self.nodes[node.fingerprint] = node
        return self

    def replace_node(self, node: Node) -> "NetworkBuilder":
        """Overwrite a node, e.g. to add a user ID while describing a network."""
        self.nodes[node.fingerprint] = node
        return self

    def add_component(self, component: EdgeComponent) -> "NetworkBuilder":
        key = (component.issuer.fingerprint, component.target.fingerprint)
        edge = self._edges.get(key)
        if edge is None:
            edge = Edge(component.issuer, component.target)
            self._edges[key] = edge
        edge.add_component(component)
        return self

    def add_edge(self, edge: Edge) -> "NetworkBuilder":
        for component in edge.all_components():
            self.add_component(component)
        return self

    def set_reference_time(self, reference_time: datetime) -> "NetworkBuilder":
        self._reference_time = reference_time
        return self

    def build(self) -> Network:
        return Network(self.nodes, self._edges, self._reference_time or utcnow())
