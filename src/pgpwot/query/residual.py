# -*- encoding: utf-8 -*-
"""
pgpwot Residual Network - Per-query view over a Network.

The residual network answers the lookups backward propagation needs and
tracks how much capacity earlier paths already consumed. Trust caps for
partially trusted roots and suppression of used edges live in side tables,
the underlying Network is never modified.
"""

import logging
from typing import Optional

from pgpwot.exceptions import SuppressionOverflow
from pgpwot.network.edge import EdgeComponent
from pgpwot.network.network import Network
from pgpwot.network.node import Node
from pgpwot.network.primitives import FULLY_TRUSTED, Identifier, RegexSet, TrustDepth

logger = logging.getLogger(__name__)


class ResidualNetwork:
    """
    Residual view of a Network for one authentication.

    Args:
        network: the trust network
        certification_network: treat every signature as an unconstrained,
            unscoped delegation
    """

    def __init__(self, network: Network, certification_network: bool = False):
        self.network = network
        self.certification_network = certification_network
        self._caps: dict[Identifier, int] = {}
        self._suppressed: dict[tuple[Identifier, Identifier], int] = {}

    @property
    def reference_time(self):
        return self.network.reference_time

    def node(self, fingerprint) -> Optional[Node]:
        return self.network.node(fingerprint)

    def is_valid_target(self, fingerprint, user_id: str) -> Optional[Node]:
        """
        The node for `fingerprint` if the binding may be authenticated.

        Returns None if the node is unknown, expired, revoked, or has
        revoked `user_id`. A node that never carried `user_id` is still
        a valid target.
        """
        target = self.network.node(fingerprint)
        if target is None:
            return None
        if target.is_expired(self.reference_time):
            logger.debug("Target %s is expired", target.fingerprint)
            return None
        if target.revocation_state.is_effective(self.reference_time):
            logger.debug("Target %s is revoked", target.fingerprint)
            return None
        revocation = target.user_ids.get(user_id)
        if revocation is not None and revocation.is_effective(self.reference_time):
            logger.debug("User ID %r on %s is revoked", user_id, target.fingerprint)
            return None
        return target

    def get_self_sig(self, fingerprint, user_id: str) -> Optional[EdgeComponent]:
        """Synthesized self-certification if the node carries `user_id`."""
        target = self.network.node(fingerprint)
        if target is None or user_id not in target.user_ids:
            return None
        return EdgeComponent.certification(
            target, target, user_id, self.reference_time,
            trust_amount=FULLY_TRUSTED,
            trust_depth=TrustDepth.limited(0),
            regexes=RegexSet.wildcard())

    def certifications_for_signee(self, fingerprint, user_id: str,
                                  min_depth: int) -> list[EdgeComponent]:
        """
        All components issued over data on `fingerprint`.

        In authentication mode only components with at least `min_depth`
        whose scope matches `user_id` are returned.
        """
        components = []
        for edge in self.network.edges_to(fingerprint):
            for component in edge.all_components():
                if not self.certification_network:
                    if component.trust_depth < min_depth:
                        continue
                    if not component.regexes.matches(user_id):
                        continue
                components.append(component)
        components.sort(key=EdgeComponent.sort_key)
        return components

    def cap_certificate(self, fingerprint, amount: int) -> None:
        """Limit every component issued by `fingerprint` to `amount`."""
        self._caps[Identifier(fingerprint)] = amount

    def get_effective_trust_amount(self, component: EdgeComponent) -> int:
        """Trust amount after applying the issuer's cap and suppression."""
        # Amounts above full trust carry no extra capacity
        amount = min(component.trust_amount, FULLY_TRUSTED)

        cap = self._caps.get(component.issuer.fingerprint)
        if cap is not None and cap < amount:
            amount = cap

        suppressed = self._suppressed.get(
            (component.issuer.fingerprint, component.target.fingerprint), 0)
        return max(0, amount - suppressed)

    def suppress_path(self, path, amount: int) -> None:
        """
        Consume `amount` of capacity on every edge of `path`.

        Raises:
            SuppressionOverflow: if an edge would be suppressed beyond 120
        """
        if amount == 0:
            return
        if amount > FULLY_TRUSTED:
            raise SuppressionOverflow(f"Cannot suppress {amount}, maximum is {FULLY_TRUSTED}")

        for component in path.components:
            key = (component.issuer.fingerprint, component.target.fingerprint)
            suppressed = self._suppressed.get(key, 0) + amount
            if suppressed > FULLY_TRUSTED:
                raise SuppressionOverflow(
                    f"Edge {key[0]} -> {key[1]} suppressed by {suppressed}, "
                    f"maximum is {FULLY_TRUSTED}")
            self._suppressed[key] = suppressed

    def suppressed(self, issuer, target) -> int:
        return self._suppressed.get((Identifier(issuer), Identifier(target)), 0)
