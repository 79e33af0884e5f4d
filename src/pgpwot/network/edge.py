# -*- encoding: utf-8 -*-
"""
pgpwot Edge - Signed relationships between two certificates.

An EdgeComponent is a single signature by an issuer over a datum on a
target certificate. The datum is either the target's primary key (a
delegation, trusting the target as an introducer) or one of its user IDs
(a certification of that binding). Components are one frozen dataclass
discriminated by the presence of a user ID.

An Edge collects every component between one (issuer, target) pair. For
each datum only the newest components are kept: adding a strictly newer
component discards the older ones, components with the same creation time
co-exist.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional

from pgpwot.exceptions import EdgeMismatch
from pgpwot.network.node import Node
from pgpwot.network.primitives import FULLY_TRUSTED, RegexSet, TrustDepth, to_seconds


class ComponentKind(str, Enum):
    """What an edge component vouches for."""
    DELEGATION = "delegation"          # Target certificate as introducer
    CERTIFICATION = "certification"    # Target's user ID binding


@dataclass(frozen=True)
class EdgeComponent:
    """
    A verified signature by `issuer` over a datum on `target`.

    Attributes:
        issuer: Node that made the signature
        target: Node that carries the signed datum
        user_id: certified user ID, None for a delegation
        creation_time: signature creation time
        expiration_time: signature expiration time, if any
        exportable: False for local-only signatures
        trust_amount: 0..255, 120 is full trust, 0 is explicit non-trust
        trust_depth: how many further hops the target may introduce
        regexes: user IDs the target may introduce
    """
    issuer: Node
    target: Node
    user_id: Optional[str]
    creation_time: datetime
    expiration_time: Optional[datetime] = None
    exportable: bool = True
    trust_amount: int = FULLY_TRUSTED
    trust_depth: TrustDepth = field(default_factory=lambda: TrustDepth.limited(0))
    regexes: RegexSet = field(default_factory=RegexSet.wildcard)

    def __post_init__(self):
        if not 0 <= self.trust_amount <= 255:
            raise ValueError(f"Trust amount must be within 0..255, got {self.trust_amount}")

    @classmethod
    def delegation(cls, issuer: Node, target: Node, creation_time: datetime,
                   trust_amount: int = FULLY_TRUSTED,
                   trust_depth: Optional[TrustDepth] = None,
                   regexes: Optional[RegexSet] = None,
                   expiration_time: Optional[datetime] = None,
                   exportable: bool = True) -> "EdgeComponent":
        """Delegation made as a direct-key signature."""
        return cls(issuer, target, None, creation_time, expiration_time, exportable,
                   trust_amount,
                   trust_depth if trust_depth is not None else TrustDepth.limited(0),
                   regexes if regexes is not None else RegexSet.wildcard())

    @classmethod
    def certification(cls, issuer: Node, target: Node, user_id: str,
                      creation_time: datetime,
                      trust_amount: int = FULLY_TRUSTED,
                      trust_depth: Optional[TrustDepth] = None,
                      regexes: Optional[RegexSet] = None,
                      expiration_time: Optional[datetime] = None,
                      exportable: bool = True) -> "EdgeComponent":
        """Certification made over a user ID."""
        return cls(issuer, target, user_id, creation_time, expiration_time, exportable,
                   trust_amount,
                   trust_depth if trust_depth is not None else TrustDepth.limited(0),
                   regexes if regexes is not None else RegexSet.wildcard())

    @property
    def kind(self) -> ComponentKind:
        if self.user_id is None:
            return ComponentKind.DELEGATION
        return ComponentKind.CERTIFICATION

    @property
    def is_delegation(self) -> bool:
        return self.user_id is None

    @property
    def is_certification(self) -> bool:
        return self.user_id is not None

    def sort_key(self) -> tuple:
        """Stable ordering: issuer, datum (delegations first), creation time."""
        return (
            self.issuer.fingerprint.fingerprint,
            self.target.fingerprint.fingerprint,
            "" if self.user_id is None else "\x01" + self.user_id,
            to_seconds(self.creation_time),
            -self.trust_amount,
        )

    def to_dict(self) -> dict:
        result = {
            "issuer": str(self.issuer.fingerprint),
            "target": str(self.target.fingerprint),
            "kind": self.kind.value,
            "creation_time": self.creation_time.isoformat(),
            "trust_amount": self.trust_amount,
            "trust_depth": self.trust_depth.value,
        }
        if self.user_id is not None:
            result["user_id"] = self.user_id
        if self.expiration_time is not None:
            result["expiration_time"] = self.expiration_time.isoformat()
        if not self.regexes.is_wildcard:
            result["regexes"] = sorted(self.regexes.expressions)
        if not self.exportable:
            result["exportable"] = False
        return result

    def __str__(self) -> str:
        scope = "" if self.regexes.is_wildcard else f", scope: {self.regexes}"
        if self.is_delegation:
            return (f"{self.issuer.fingerprint} delegates to {self.target.fingerprint} "
                    f"[{self.trust_amount}, depth {self.trust_depth}{scope}]")
        text = (f"{self.issuer.fingerprint} certifies binding: {self.user_id} <-> "
                f"{self.target.fingerprint} [{self.trust_amount}]")
        if self.trust_depth > 0:
            text += f" and delegates [depth {self.trust_depth}{scope}]"
        return text


class Edge:
    """
    All signatures one certificate made over data on another certificate.

    Usage:
        edge = Edge(alice, bob)
        edge.add_component(EdgeComponent.certification(alice, bob, "<bob@example.org>", now))
        for component in edge.all_components():
            ...
    """

    def __init__(self, issuer: Node, target: Node):
        self.issuer = issuer
        self.target = target
        self.delegations: list[EdgeComponent] = []
        self.certifications: dict[str, list[EdgeComponent]] = {}

    @classmethod
    def from_component(cls, component: EdgeComponent) -> "Edge":
        edge = cls(component.issuer, component.target)
        edge.add_component(component)
        return edge

    def add_component(self, component: EdgeComponent) -> None:
        """
        Add a component, keeping only the newest ones for its datum.

        Raises:
            EdgeMismatch: if the component connects different certificates
        """
        if component.issuer.fingerprint != self.issuer.fingerprint:
            raise EdgeMismatch(
                f"Component issuer {component.issuer.fingerprint} does not match "
                f"edge issuer {self.issuer.fingerprint}")
        if component.target.fingerprint != self.target.fingerprint:
            raise EdgeMismatch(
                f"Component target {component.target.fingerprint} does not match "
                f"edge target {self.target.fingerprint}")

        if component.user_id is None:
            bucket = self.delegations
        else:
            bucket = self.certifications.setdefault(component.user_id, [])

        if not bucket:
            bucket.append(component)
            return

        newest = to_seconds(bucket[0].creation_time)
        created = to_seconds(component.creation_time)
        if created > newest:
            bucket.clear()
            bucket.append(component)
        elif created == newest and component not in bucket:
            bucket.append(component)

    def join(self, other: "Edge") -> "Edge":
        """Merge all components of `other` into this edge."""
        if other is self:
            return self
        for component in other.all_components():
            self.add_component(component)
        return self

    def components(self) -> dict[Optional[str], list[EdgeComponent]]:
        """Components keyed by datum: user ID, or None for delegations."""
        result: dict[Optional[str], list[EdgeComponent]] = {}
        if self.delegations:
            result[None] = list(self.delegations)
        for user_id, certs in self.certifications.items():
            result[user_id] = list(certs)
        return result

    def all_components(self) -> Iterator[EdgeComponent]:
        yield from self.delegations
        for certs in self.certifications.values():
            yield from certs

    def __len__(self) -> int:
        return len(self.delegations) + sum(len(c) for c in self.certifications.values())

    def __str__(self) -> str:
        return "\n".join(str(c) for c in self.all_components())
