# -*- encoding: utf-8 -*-
"""
pgpwot Query - Web of Trust authentication.

Authenticating a binding <fingerprint, user ID> runs a partial max-flow
search over the trust network:

1. Backward propagation: a Dijkstra search that starts at the target
   binding and walks signatures backwards towards the trust roots. The
   first hop is a certification of the target user ID (or the target's
   self-signature), every further hop is a delegation with enough depth
   and a scope that matches the user ID.
2. Augmentation: the best path found from any root is recorded, its
   amount is subtracted from the residual network, and the search runs
   again until the requested trust amount is reached or no path is left.
"""

import logging
from typing import Optional

from pgpwot.network.edge import EdgeComponent
from pgpwot.network.network import Network
from pgpwot.network.node import Node
from pgpwot.network.primitives import FULLY_TRUSTED, Identifier
from pgpwot.network.roots import Roots
from pgpwot.query.cost import Cost, PairPriorityQueue
from pgpwot.query.path import Path, Paths
from pgpwot.query.residual import ResidualNetwork

logger = logging.getLogger(__name__)


class Query:
    """
    Authenticates bindings in a Network relative to a set of roots.

    A Query holds no per-call state: every authenticate() call works on a
    fresh ResidualNetwork, so one Query can serve many calls.

    Usage:
        query = Query(network, Roots([Root(alice_fpr)]))
        paths = query.authenticate(bob_fpr, "<bob@example.org>", 120)
        if paths.amount >= 120:
            ...
    """

    def __init__(self, network: Network, roots: Roots,
                 certification_network: bool = False,
                 max_iterations: Optional[int] = None):
        """
        Initialize the query.

        Args:
            network: trust network to search
            roots: trust roots paths must start at
            certification_network: treat every signature as an
                unconstrained delegation and ignore root trust amounts
            max_iterations: upper bound on augmenting searches per call
        """
        self.network = network
        self.roots = roots
        self.certification_network = certification_network
        self.max_iterations = max_iterations

    def authenticate(self, fingerprint, user_id: str, target_amount: int) -> Paths:
        """
        Find paths authenticating <fingerprint, user_id>.

        Args:
            fingerprint: target certificate
            user_id: target user ID
            target_amount: trust amount to collect, 120 for full authentication

        Returns:
            Paths in the order they were found, possibly empty
        """
        target = Identifier(fingerprint)
        logger.debug("Authenticating <%s, %r>, roots: %s", target, user_id, self.roots)

        network = ResidualNetwork(self.network, self.certification_network)
        if not self.certification_network:
            for root in self.roots:
                if root.amount != FULLY_TRUSTED:
                    network.cap_certificate(root.fingerprint, root.amount)

        paths = Paths()
        iterations = 0
        while paths.amount < target_amount:
            if self.max_iterations is not None and iterations >= self.max_iterations:
                logger.debug("Stopping after %d iterations", iterations)
                break
            iterations += 1

            candidates = self._backward_propagate(network, target, user_id)
            found = [candidates[fpr] for fpr in self.roots.fingerprints() if fpr in candidates]
            if not found:
                break

            # Largest amount, then shortest, then lowest root fingerprint
            path, amount = min(found, key=lambda pa: (-pa[1], pa[0].length, pa[0].root.fingerprint))
            logger.debug("Selected path %s with amount %d", path, amount)

            network.suppress_path(path, amount)
            paths.add(path, amount)

        return paths

    def backward_propagate(self, fingerprint, user_id: str) -> dict[Identifier, tuple[Path, int]]:
        """
        Single backward propagation on a fresh residual network.

        Returns:
            best path and its amount, keyed by the path's starting node. When
            no roots are configured every node with a path is included.
        """
        network = ResidualNetwork(self.network, self.certification_network)
        return self._backward_propagate(network, Identifier(fingerprint), user_id)

    def _backward_propagate(self, network: ResidualNetwork, target_fpr: Identifier,
                            user_id: str) -> dict[Identifier, tuple[Path, int]]:
        target = network.is_valid_target(target_fpr, user_id)
        if target is None:
            return {}

        # Node -> edge component towards the target, None for the target itself
        forward: dict[Identifier, Optional[EdgeComponent]] = {}
        dist: dict[Identifier, Cost] = {}
        queue: PairPriorityQueue[Identifier] = PairPriorityQueue()

        self_sig = network.get_self_sig(target_fpr, user_id)
        self_sig_amount = network.get_effective_trust_amount(self_sig) if self_sig else 0
        if self_sig is not None and self_sig_amount > 0:
            cost = Cost(1, self_sig_amount)
            forward[target_fpr] = self_sig
        else:
            cost = Cost(0, FULLY_TRUSTED)
            forward[target_fpr] = None
        dist[target_fpr] = cost
        queue.insert_or_update(target_fpr, cost)

        while True:
            popped = queue.pop()
            if popped is None:
                break
            signee_fpr = popped[0]
            logger.debug("Processing signee %s", signee_fpr)

            root = self.roots.get(signee_fpr)
            if root is not None and root.amount >= FULLY_TRUSTED:
                logger.debug("  Skipping signee that is a fully trusted root")
                continue

            signee_cost = dist[signee_fpr]
            logger.debug("  Current cost to target: %s", signee_cost)

            # One hop less than the current length, so a depth 0 certification
            # can still replace a terminating self-signature
            min_depth = max(0, signee_cost.length - 1)
            for component in network.certifications_for_signee(signee_fpr, user_id, min_depth):
                issuer_fpr = component.issuer.fingerprint
                logger.debug("    Certification by %s", issuer_fpr)

                amount = network.get_effective_trust_amount(component)
                if amount == 0:
                    logger.debug("      Skipping, effective trust amount is 0")
                    continue

                certifies_target = component.user_id == user_id and signee_fpr == target_fpr
                if signee_fpr == target_fpr and signee_cost.length == 0 and not certifies_target:
                    logger.debug("      Certification is for another user ID (%s)", component.user_id)
                    continue

                if certifies_target:
                    alt_cost = Cost(1, amount)
                else:
                    if not self.certification_network and component.trust_depth < signee_cost.length:
                        logger.debug("      Not enough depth (%s, needed %d)",
                                     component.trust_depth, signee_cost.length)
                        continue
                    alt_cost = signee_cost.extend_by(amount)

                current = dist.get(issuer_fpr)
                if current is None or alt_cost < current:
                    logger.debug("      Forward pointer for %s: %s (%s)",
                                 issuer_fpr, component.target.fingerprint, alt_cost)
                    forward[issuer_fpr] = component
                    dist[issuer_fpr] = alt_cost
                if current is None:
                    queue.insert_or_update(issuer_fpr, alt_cost)

        return self._reconstruct(target, user_id, forward, dist)

    def _reconstruct(self, target: Node, user_id: str,
                     forward: dict[Identifier, Optional[EdgeComponent]],
                     dist: dict[Identifier, Cost]) -> dict[Identifier, tuple[Path, int]]:
        paths: dict[Identifier, tuple[Path, int]] = {}
        for start in sorted(forward):
            if self.roots and not self.roots.is_root(start):
                continue
            component = forward[start]
            if component is None:
                continue
            path = self._assemble(target, user_id, component.issuer, forward)
            logger.debug("Authenticated <%s, %r>: %s", target.fingerprint, user_id, path)
            paths[start] = (path, dist[start].amount)
        return paths

    def _assemble(self, target: Node, user_id: str, issuer: Node,
                  forward: dict[Identifier, Optional[EdgeComponent]]) -> Path:
        path = Path(issuer)
        component = forward[issuer.fingerprint]
        while component is not None:
            path.append(component, self.certification_network)
            if component.user_id == user_id and component.target.fingerprint == target.fingerprint:
                break
            component = forward[component.target.fingerprint]
        return path
