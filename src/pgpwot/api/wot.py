"""
pgpwot - OpenPGP Web of Trust main API.

This module provides the high-level interface for authenticating
certificate/user ID bindings against a trust network.

Usage:
    from pgpwot import WebOfTrust, Roots

    wot = WebOfTrust(network, Roots(["A1B2..."]))

    # Authenticate one binding
    result = wot.authenticate("C3D4...", "<bob@example.org>")
    if result.acceptable:
        print(result.binding.amount)

    # All authenticated user IDs of a certificate
    for binding in wot.identify("C3D4..."):
        print(binding.user_id, binding.amount)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional, Sequence

from hio.help import Deck

from pgpwot.exceptions import CyclicPath, DepthExhausted
from pgpwot.network.edge import EdgeComponent
from pgpwot.network.network import Network
from pgpwot.network.primitives import FULLY_TRUSTED, Identifier
from pgpwot.network.roots import Roots
from pgpwot.query.path import Path, Paths
from pgpwot.query.query import Query
from pgpwot.query.residual import ResidualNetwork

logger = logging.getLogger(__name__)


class AuthenticationLevel(IntEnum):
    """Trust amounts of the usual authentication levels."""
    PARTIALLY = 40
    FULLY = 120
    DOUBLY = 240


@dataclass
class Binding:
    """
    A <certificate, user ID> pair and the paths that authenticate it.

    Attributes:
        fingerprint: certificate identifier
        user_id: the bound user ID
        paths: authenticating paths, possibly empty
    """
    fingerprint: Identifier
    user_id: str
    paths: Paths = field(default_factory=Paths)

    @property
    def amount(self) -> int:
        return self.paths.amount

    def percentage(self, target_amount: int) -> int:
        """Collected amount as an integer percentage of `target_amount`."""
        return self.amount * 100 // target_amount

    def to_dict(self) -> dict:
        return {
            "fingerprint": str(self.fingerprint),
            "user_id": self.user_id,
            "amount": self.amount,
            "paths": self.paths.to_dict()["paths"],
        }


@dataclass
class AuthenticationResult:
    """
    Outcome of authenticating a binding.

    Attributes:
        binding: the binding and its paths
        target_amount: amount that was requested
    """
    binding: Binding
    target_amount: int

    @property
    def percentage(self) -> int:
        return self.binding.percentage(self.target_amount)

    @property
    def acceptable(self) -> bool:
        return self.binding.amount >= self.target_amount

    def to_dict(self) -> dict:
        result = self.binding.to_dict()
        result["target_amount"] = self.target_amount
        result["percentage"] = self.percentage
        result["acceptable"] = self.acceptable
        return result


@dataclass
class BindingList:
    """
    Bindings returned by identify, list and lookup.

    Attributes:
        bindings: bindings in deterministic order
        target_amount: amount each binding was authenticated against
    """
    bindings: list[Binding] = field(default_factory=list)
    target_amount: int = FULLY_TRUSTED

    def __iter__(self) -> Iterator[Binding]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def __bool__(self) -> bool:
        return len(self.bindings) > 0

    def to_dict(self) -> dict:
        return {
            "target_amount": self.target_amount,
            "bindings": [b.to_dict() for b in self.bindings],
        }


@dataclass
class PathCheckResult:
    """
    Outcome of checking a caller supplied path.

    Attributes:
        path: the assembled path, None if no hop could be resolved
        amount: trust amount the path carries
        target_amount: amount that was requested
        errors: reasons the path is unusable, empty on success
    """
    path: Optional[Path]
    amount: int
    target_amount: int
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def acceptable(self) -> bool:
        return self.valid and self.amount >= self.target_amount

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "acceptable": self.acceptable,
            "amount": self.amount,
            "target_amount": self.target_amount,
            "path": self.path.to_dict() if self.path is not None else None,
            "errors": list(self.errors),
        }


class WebOfTrust:
    """
    Web of Trust operations over one Network.

    NOT a Doer - uses Deck pattern for integration with an external
    scheduler.

    Usage:
        wot = WebOfTrust(network, roots)

        # Synchronous
        result = wot.authenticate(fingerprint, user_id)

        # Queued
        wot.requests.push(("req-1", "authenticate", {"fingerprint": fpr, "user_id": uid}))
        wot.process()
        request_id, result = wot.results.pull()
    """

    OPERATIONS = ("authenticate", "identify", "list", "lookup", "path")

    def __init__(
        self,
        network: Network,
        roots: Roots,
        certification_network: bool = False,
        trust_amount: int = AuthenticationLevel.FULLY,
        max_iterations: Optional[int] = None,
    ):
        """
        Initialize with a network and its trust roots.

        Args:
            network: trust network, evaluated at its reference time
            roots: trust roots
            certification_network: treat all signatures as unconstrained delegations
            trust_amount: amount a binding needs to be acceptable
            max_iterations: upper bound on augmenting searches per authentication
        """
        self.network = network
        self.roots = roots
        self.certification_network = certification_network
        self.trust_amount = int(trust_amount)
        if self.trust_amount <= 0:
            raise ValueError(f"Trust amount must be positive, got {trust_amount}")
        self.max_iterations = max_iterations

        # Deck for queued evaluation
        self.requests = Deck()  # Input: (request_id, operation, kwargs)
        self.results = Deck()   # Output: (request_id, result)

    def _query(self) -> Query:
        return Query(self.network, self.roots, self.certification_network, self.max_iterations)

    def _authenticate_binding(self, fingerprint: Identifier, user_id: str) -> Binding:
        paths = self._query().authenticate(fingerprint, user_id, self.trust_amount)
        return Binding(fingerprint, user_id, paths)

    def authenticate(self, fingerprint, user_id: str, email: bool = False) -> AuthenticationResult:
        """
        Authenticate the binding <fingerprint, user_id>.

        Args:
            fingerprint: certificate to authenticate
            user_id: user ID, or an e-mail address when `email` is set
            email: authenticate every user ID of the certificate that
                contains "<user_id>" and return the best one

        Returns:
            AuthenticationResult, with an empty path list if nothing authenticates
        """
        fingerprint = Identifier(fingerprint)
        if not email:
            return AuthenticationResult(self._authenticate_binding(fingerprint, user_id),
                                        self.trust_amount)

        node = self.network.node(fingerprint)
        candidates = self._matching_user_ids(node.user_ids, user_id, True) if node else []
        best = None
        for candidate in candidates:
            binding = self._authenticate_binding(fingerprint, candidate)
            if best is None or binding.amount > best.amount:
                best = binding
        if best is None:
            best = Binding(fingerprint, user_id)
        return AuthenticationResult(best, self.trust_amount)

    def identify(self, fingerprint) -> BindingList:
        """All user IDs of a certificate that authenticate to a non-zero amount."""
        node = self.network.node(fingerprint)
        if node is None:
            return BindingList([], self.trust_amount)

        bindings = []
        for user_id in sorted(node.user_ids):
            binding = self._authenticate_binding(node.fingerprint, user_id)
            if binding.amount != 0:
                bindings.append(binding)
        return BindingList(bindings, self.trust_amount)

    def lookup(self, user_id: str, email: bool = False) -> BindingList:
        """
        Find certificates carrying `user_id` and authenticate them.

        Args:
            user_id: exact user ID, or an e-mail address when `email` is set
            email: match every user ID containing "<user_id>"

        Returns:
            bindings with at least one path
        """
        bindings = []
        for fingerprint in sorted(self.network.nodes):
            node = self.network.nodes[fingerprint]
            for candidate in self._matching_user_ids(node.user_ids, user_id, email):
                binding = self._authenticate_binding(fingerprint, candidate)
                if binding.paths:
                    bindings.append(binding)
        return BindingList(bindings, self.trust_amount)

    def path(self, root, fingerprints: Sequence, user_id: str) -> PathCheckResult:
        """
        Check a path through the given certificates.

        Every hop uses the best usable component: delegations for inner
        hops, a certification of `user_id` for the last hop.

        Args:
            root: first certificate on the path
            fingerprints: following certificates, the last one is the target
            user_id: user ID bound to the target

        Returns:
            PathCheckResult with the assembled path or the failures found
        """
        chain = [Identifier(root)] + [Identifier(f) for f in fingerprints]
        errors: list[str] = []
        residual = ResidualNetwork(self.network, self.certification_network)

        for fpr in chain:
            if residual.node(fpr) is None:
                errors.append(f"{fpr} is not in the network")
        if errors:
            return PathCheckResult(None, 0, self.trust_amount, errors)

        target = chain[-1]
        if residual.is_valid_target(target, user_id) is None:
            errors.append(f"<{target}, {user_id}> cannot be authenticated at the reference time")

        path = Path(residual.node(chain[0]))
        hops = list(zip(chain, chain[1:]))
        if not hops:
            self_sig = residual.get_self_sig(target, user_id)
            if self_sig is None:
                errors.append(f"{target} does not carry user ID {user_id!r}")
            else:
                path.append(self_sig, self.certification_network)

        for index, (issuer, signee) in enumerate(hops):
            remaining = len(hops) - index - 1
            component = self._best_component(residual, issuer, signee, user_id,
                                             last=remaining == 0, remaining=remaining)
            if component is None:
                kind = "certification of " + repr(user_id) if remaining == 0 else "delegation"
                errors.append(f"No usable {kind} by {issuer} on {signee}")
                break
            try:
                path.append(component, self.certification_network)
            except (CyclicPath, DepthExhausted) as ex:
                errors.append(str(ex))
                break

        amount = path.amount if path.components else 0
        root_entry = self.roots.get(chain[0])
        if root_entry is not None and not self.certification_network:
            amount = min(amount, root_entry.amount)
        return PathCheckResult(path, amount if not errors else 0, self.trust_amount, errors)

    def _best_component(self, residual: ResidualNetwork, issuer: Identifier, signee: Identifier,
                        user_id: str, last: bool, remaining: int) -> Optional[EdgeComponent]:
        edge = self.network.edge(issuer, signee)
        if edge is None:
            return None
        usable = []
        for component in edge.all_components():
            if last:
                if component.user_id != user_id:
                    continue
            elif not self.certification_network:
                if component.trust_depth < remaining or not component.regexes.matches(user_id):
                    continue
            usable.append(component)
        if not usable:
            return None
        return max(usable, key=lambda c: (residual.get_effective_trust_amount(c),
                                          c.trust_depth.value, c.creation_time))

    @staticmethod
    def _matching_user_ids(user_ids, user_id: str, email: bool) -> list[str]:
        if email:
            return sorted(u for u in user_ids if f"<{user_id}>" in u)
        return [u for u in user_ids if u == user_id]

    def process(self) -> int:
        """
        Drain the request Deck, pushing (request_id, result) to results.

        Returns:
            number of requests processed

        Raises:
            ValueError: for an unknown operation
        """
        count = 0
        while True:
            request = self.requests.pull(emptive=True)
            if request is None:
                break
            request_id, operation, kwargs = request
            if operation not in self.OPERATIONS:
                raise ValueError(f"Unknown operation: {operation}")
            logger.debug("Processing request %s: %s", request_id, operation)
            result = getattr(self, operation)(**(kwargs or {}))
            self.results.push((request_id, result))
            count += 1
        return count

    # Defined last: the method name shadows the builtin in the class body
    def list(self) -> BindingList:
        """Every binding in the network that authenticates to a non-zero amount."""
        bindings = []
        for fingerprint in sorted(self.network.nodes):
            bindings.extend(self.identify(fingerprint).bindings)
        return BindingList(bindings, self.trust_amount)
