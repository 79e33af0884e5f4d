"""
pgpwot Network - Trust graph model.

This module provides:
- Identifier, TrustDepth, RegexSet, RevocationState: value types
- Node: certificate synopsis
- EdgeComponent, Edge: delegations and certifications between certificates
- Network, NetworkBuilder: the read-only trust graph and its builder
- Root, Roots: trust roots
- build_network: loader over pre-verified certificate records
"""

from pgpwot.network.primitives import (
    FULLY_TRUSTED,
    UNCONSTRAINED_DEPTH,
    Identifier,
    TrustDepth,
    RegexSet,
    RevocationType,
    RevocationState,
)
from pgpwot.network.node import Node
from pgpwot.network.edge import ComponentKind, EdgeComponent, Edge
from pgpwot.network.network import Network, NetworkBuilder
from pgpwot.network.roots import Root, Roots
from pgpwot.network.loader import (
    SignatureType,
    SignatureRecord,
    CertificateRecord,
    SignaturePolicy,
    NetworkLoader,
    build_network,
)

__all__ = [
    "FULLY_TRUSTED",
    "UNCONSTRAINED_DEPTH",
    "Identifier",
    "TrustDepth",
    "RegexSet",
    "RevocationType",
    "RevocationState",
    "Node",
    "ComponentKind",
    "EdgeComponent",
    "Edge",
    "Network",
    "NetworkBuilder",
    "Root",
    "Roots",
    "SignatureType",
    "SignatureRecord",
    "CertificateRecord",
    "SignaturePolicy",
    "NetworkLoader",
    "build_network",
]
