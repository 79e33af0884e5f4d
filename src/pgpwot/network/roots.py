# -*- encoding: utf-8 -*-
"""
pgpwot Roots - Trust roots that authentication starts from.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

from pgpwot.network.primitives import FULLY_TRUSTED, Identifier


@dataclass(frozen=True)
class Root:
    """
    A certificate trusted a priori.

    Attributes:
        fingerprint: Identifier of the root certificate
        amount: trust placed in the root, 120 means fully trusted
    """
    fingerprint: Identifier
    amount: int = FULLY_TRUSTED

    def __post_init__(self):
        if not isinstance(self.fingerprint, Identifier):
            object.__setattr__(self, "fingerprint", Identifier(self.fingerprint))

    @property
    def fully_trusted(self) -> bool:
        return self.amount >= FULLY_TRUSTED

    @classmethod
    def parse(cls, text: str) -> "Root":
        """Parse "FINGERPRINT" or "FINGERPRINT:AMOUNT"."""
        fingerprint, _, amount = text.strip().partition(":")
        return cls(Identifier(fingerprint), int(amount) if amount else FULLY_TRUSTED)

    def __str__(self) -> str:
        return f"{self.fingerprint} [{self.amount}]"


class Roots:
    """A set of trust roots, keyed by fingerprint."""

    def __init__(self, roots: Optional[Iterable[Union[Root, Identifier, str]]] = None):
        self._roots: dict[Identifier, Root] = {}
        for root in roots or ():
            if not isinstance(root, Root):
                root = Root(Identifier(root))
            self._roots[root.fingerprint] = root

    @classmethod
    def parse(cls, text: str) -> "Roots":
        """Parse a comma separated list of "FINGERPRINT[:AMOUNT]" entries."""
        return cls(Root.parse(part) for part in text.split(",") if part.strip())

    def get(self, fingerprint) -> Optional[Root]:
        return self._roots.get(Identifier(fingerprint))

    def is_root(self, fingerprint) -> bool:
        return Identifier(fingerprint) in self._roots

    def fingerprints(self) -> list[Identifier]:
        return sorted(self._roots)

    def roots(self) -> list[Root]:
        return [self._roots[fpr] for fpr in sorted(self._roots)]

    def __iter__(self) -> Iterator[Root]:
        return iter(self.roots())

    def __len__(self) -> int:
        return len(self._roots)

    def __bool__(self) -> bool:
        return bool(self._roots)

    def __str__(self) -> str:
        return ", ".join(str(fpr) for fpr in self.fingerprints())
