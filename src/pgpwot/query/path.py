# -*- encoding: utf-8 -*-
"""
pgpwot Path - Walks from a trust root to a target binding.

A Path starts at a root certificate and grows by appending edge
components. Appending enforces that the walk is connected, that the
delegations along it leave enough depth, and that no certificate is
visited twice (with the self-signature closures as the only exceptions).
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from pgpwot.exceptions import AmountExceeded, CyclicPath, DepthExhausted, PathMismatch
from pgpwot.network.edge import EdgeComponent
from pgpwot.network.node import Node
from pgpwot.network.primitives import FULLY_TRUSTED, TrustDepth


class Path:
    """
    A root node followed by a chain of edge components.

    Attributes:
        root: node the path starts at
        residual_depth: how many further hops the path may still be extended by
    """

    def __init__(self, root: Node):
        self.root = root
        self._components: list[EdgeComponent] = []
        self.residual_depth = TrustDepth.unconstrained()

    @property
    def target(self) -> Node:
        """Current tail of the path: the last component's target, or the root."""
        if not self._components:
            return self.root
        return self._components[-1].target

    @property
    def certificates(self) -> list[Node]:
        """The root followed by the target of every component."""
        return [self.root] + [c.target for c in self._components]

    @property
    def components(self) -> list[EdgeComponent]:
        return list(self._components)

    @property
    def length(self) -> int:
        """Number of nodes on the path, 1 for a bare root."""
        return len(self._components) + 1

    @property
    def amount(self) -> int:
        """Smallest trust amount of any component, 120 for a bare root."""
        if not self._components:
            return FULLY_TRUSTED
        return min(c.trust_amount for c in self._components)

    def append(self, component: EdgeComponent, certification_network: bool = False) -> None:
        """
        Extend the path by one component.

        Args:
            component: edge component issued by the current tail
            certification_network: ignore depth limits

        Raises:
            PathMismatch: if the component is not issued by the current tail
            DepthExhausted: if the path has no residual depth left
            CyclicPath: if the component revisits a certificate
        """
        if component.issuer.fingerprint != self.target.fingerprint:
            raise PathMismatch(
                f"Cannot append edge to path: tail {self.target.fingerprint} "
                f"is not the issuer {component.issuer.fingerprint}")
        if not certification_network and not self.residual_depth > 0:
            raise DepthExhausted(
                f"Path from {self.root.fingerprint} has no residual depth left")
        if self._is_cyclic(component):
            raise CyclicPath(
                f"Adding {component.issuer.fingerprint} -> {component.target.fingerprint} "
                f"would create a cycle")

        if not certification_network:
            self.residual_depth = component.trust_depth.min(self.residual_depth.reduce(1))
        self._components.append(component)

    def _is_cyclic(self, component: EdgeComponent) -> bool:
        target = component.target.fingerprint

        if not self._components:
            # Only a self-signed binding may point back at the root right away
            return target == self.root.fingerprint and component.is_delegation

        if target == self.root.fingerprint:
            return True

        last = self._components[-1]
        for component_seen in self._components[:-1]:
            if component_seen.target.fingerprint == target:
                return True
        if last.target.fingerprint == target:
            return not (component.is_certification and component.user_id != last.user_id)
        return False

    def to_dict(self) -> dict:
        return {
            "root": str(self.root.fingerprint),
            "target": str(self.target.fingerprint),
            "length": self.length,
            "amount": self.amount,
            "residual_depth": self.residual_depth.value,
            "certificates": [str(n.fingerprint) for n in self.certificates],
            "components": [c.to_dict() for c in self._components],
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self.root == other.root and self._components == other._components

    def __hash__(self) -> int:
        return hash((self.root, tuple(self._components)))

    def __str__(self) -> str:
        chain = " -> ".join(str(c.target.fingerprint) for c in self._components)
        return f"{{{self.root.fingerprint}}} => {{{chain}}} (residual {self.residual_depth})"


@dataclass
class PathItem:
    """
    A path together with the trust amount it contributes.

    Attributes:
        path: the walk from a root to the target
        amount: amount the path contributes, at most path.amount
    """
    path: Path
    amount: int

    def to_dict(self) -> dict:
        result = self.path.to_dict()
        result["effective_amount"] = self.amount
        return result


class Paths:
    """Ordered collection of paths and their effective amounts."""

    def __init__(self):
        self._items: list[PathItem] = []

    def add(self, path: Path, amount: int) -> None:
        """
        Record a path contributing `amount`.

        Raises:
            AmountExceeded: if `amount` is more than the path can carry
        """
        if amount > path.amount:
            raise AmountExceeded(
                f"Cannot record {amount} for a path carrying only {path.amount}")
        self._items.append(PathItem(path, amount))

    @property
    def items(self) -> list[PathItem]:
        return list(self._items)

    @property
    def paths(self) -> list[Path]:
        return [item.path for item in self._items]

    @property
    def amount(self) -> int:
        """Sum of the effective amounts of all paths."""
        return sum(item.amount for item in self._items)

    def best(self) -> Optional[PathItem]:
        return self._items[0] if self._items else None

    def to_dict(self) -> dict:
        return {
            "amount": self.amount,
            "paths": [item.to_dict() for item in self._items],
        }

    def __iter__(self) -> Iterator[PathItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
