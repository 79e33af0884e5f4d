# -*- encoding: utf-8 -*-
"""
pgpwot Primitives - Immutable value types of the trust network.

- Identifier: case-insensitive certificate fingerprint used as graph key
- TrustDepth: 0..255 delegation depth, 255 meaning unconstrained
- RegexSet: scope of a delegation, empty set is a wildcard
- RevocationState: not revoked, soft revoked at a timestamp, or hard revoked
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import total_ordering
from typing import Iterable, Optional, Union

from pgpwot.exceptions import DepthExhausted

logger = logging.getLogger(__name__)

# Trust amount at which a binding or introducer counts as fully trusted
FULLY_TRUSTED = 120

# Depth value reserved for "no limit"
UNCONSTRAINED_DEPTH = 255


def to_seconds(moment: datetime) -> int:
    """
    Truncate a datetime to whole POSIX seconds.

    Naive datetimes are interpreted as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def utcnow() -> datetime:
    """Current time, timezone aware and truncated to the second."""
    return datetime.now(timezone.utc).replace(microsecond=0)


@total_ordering
class Identifier:
    """
    Identifier of a node. For OpenPGP this is the certificate fingerprint.

    The fingerprint is normalized to upper case, so equality, hashing and
    ordering are case-insensitive.
    """

    __slots__ = ("_fingerprint",)

    def __init__(self, fingerprint: Union[str, "Identifier"]):
        if isinstance(fingerprint, Identifier):
            fingerprint = fingerprint.fingerprint
        self._fingerprint = fingerprint.strip().upper()

    @property
    def fingerprint(self) -> str:
        return self._fingerprint

    def __eq__(self, other) -> bool:
        if isinstance(other, Identifier):
            return self._fingerprint == other._fingerprint
        if isinstance(other, str):
            return self._fingerprint == other.strip().upper()
        return NotImplemented

    def __lt__(self, other: "Identifier") -> bool:
        if not isinstance(other, Identifier):
            return NotImplemented
        return self._fingerprint < other._fingerprint

    def __hash__(self) -> int:
        return hash(self._fingerprint)

    def __str__(self) -> str:
        return self._fingerprint

    def __repr__(self) -> str:
        return f"Identifier({self._fingerprint!r})"


@total_ordering
class TrustDepth:
    """
    Trust depth of a delegation.

    A limited depth is an integer in 0..254. The value 255 means
    unconstrained. Comparisons with plain ints treat unconstrained as
    larger than any int.
    """

    __slots__ = ("_value",)

    def __init__(self, value: int):
        if value < 0 or value > UNCONSTRAINED_DEPTH:
            raise ValueError(f"Trust depth must be within 0..255, got {value}")
        self._value = value

    @classmethod
    def limited(cls, value: int) -> "TrustDepth":
        if value < 0 or value >= UNCONSTRAINED_DEPTH:
            raise ValueError(f"Limited trust depth must be within 0..254, got {value}")
        return cls(value)

    @classmethod
    def unconstrained(cls) -> "TrustDepth":
        return cls(UNCONSTRAINED_DEPTH)

    @classmethod
    def auto(cls, value: int) -> "TrustDepth":
        """Unconstrained iff value is 255, limited otherwise."""
        if value == UNCONSTRAINED_DEPTH:
            return cls.unconstrained()
        return cls.limited(value)

    @property
    def value(self) -> int:
        return self._value

    @property
    def is_unconstrained(self) -> bool:
        return self._value == UNCONSTRAINED_DEPTH

    def reduce(self, amount: int) -> "TrustDepth":
        """
        Reduce the depth by `amount` hops.

        Raises:
            DepthExhausted: if a limited depth would drop below zero
        """
        if self.is_unconstrained:
            return self
        if self._value < amount:
            raise DepthExhausted(f"Cannot reduce trust depth {self._value} by {amount}")
        return TrustDepth.limited(self._value - amount)

    def min(self, other: "TrustDepth") -> "TrustDepth":
        if self.is_unconstrained:
            return other
        if other.is_unconstrained:
            return self
        return self if self._value <= other._value else other

    def _rank(self, other) -> Optional[int]:
        if isinstance(other, TrustDepth):
            return other._value
        if isinstance(other, int) and not isinstance(other, bool):
            return other
        return None

    def __eq__(self, other) -> bool:
        if isinstance(other, TrustDepth):
            return self._value == other._value
        if isinstance(other, int) and not isinstance(other, bool):
            return not self.is_unconstrained and self._value == other
        return NotImplemented

    def __lt__(self, other) -> bool:
        rank = self._rank(other)
        if rank is None:
            return NotImplemented
        if self.is_unconstrained:
            return False
        if isinstance(other, TrustDepth) and other.is_unconstrained:
            return True
        return self._value < rank

    def __gt__(self, other) -> bool:
        rank = self._rank(other)
        if rank is None:
            return NotImplemented
        if self.is_unconstrained:
            return not (isinstance(other, TrustDepth) and other.is_unconstrained)
        if isinstance(other, TrustDepth) and other.is_unconstrained:
            return False
        return self._value > rank

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return "unconstrained" if self.is_unconstrained else str(self._value)

    def __repr__(self) -> str:
        return f"TrustDepth({self})"


@dataclass(frozen=True)
class RegexSet:
    """
    Set of regular expressions scoping a delegation.

    An empty set is a wildcard and matches every user ID. Otherwise a user
    ID matches if any member expression is found anywhere in it.
    """
    expressions: frozenset = field(default_factory=frozenset)

    @classmethod
    def wildcard(cls) -> "RegexSet":
        return cls()

    @classmethod
    def from_expressions(cls, expressions: Iterable[str]) -> "RegexSet":
        return cls(frozenset(expressions))

    @classmethod
    def from_expression(cls, expression: str) -> "RegexSet":
        return cls(frozenset([expression]))

    @classmethod
    def for_domain(cls, domain: str) -> "RegexSet":
        """Scope matching e-mail addresses in `domain` and its subdomains."""
        return cls.from_expression("<[^>]+[@.]" + re.escape(domain) + ">$")

    @property
    def is_wildcard(self) -> bool:
        return not self.expressions

    def matches(self, user_id: str) -> bool:
        if self.is_wildcard:
            return True
        for expression in self.expressions:
            try:
                if re.search(expression, user_id):
                    return True
            except re.error as e:
                logger.debug("Ignoring invalid regex %r: %s", expression, e)
        return False

    def __str__(self) -> str:
        return ", ".join(sorted(self.expressions))


class RevocationType(str, Enum):
    """Kinds of revocation."""
    NONE = "none"
    SOFT = "soft"
    HARD = "hard"


@dataclass(frozen=True)
class RevocationState:
    """
    Revocation state of a certificate or user ID.

    Attributes:
        type: NONE, SOFT or HARD
        timestamp: creation time of a soft revocation
    """
    type: RevocationType = RevocationType.NONE
    timestamp: Optional[datetime] = None

    @classmethod
    def not_revoked(cls) -> "RevocationState":
        return cls()

    @classmethod
    def soft_revoked(cls, timestamp: datetime) -> "RevocationState":
        return cls(RevocationType.SOFT, timestamp)

    @classmethod
    def hard_revoked(cls) -> "RevocationState":
        return cls(RevocationType.HARD)

    @property
    def is_hard(self) -> bool:
        return self.type == RevocationType.HARD

    @property
    def is_soft(self) -> bool:
        return self.type == RevocationType.SOFT

    @property
    def is_revoked(self) -> bool:
        return self.type != RevocationType.NONE

    def is_effective(self, reference_time: datetime) -> bool:
        """Hard always, soft from its timestamp on (inclusive), never otherwise."""
        if self.is_hard:
            return True
        if self.is_soft:
            return to_seconds(reference_time) >= to_seconds(self.timestamp)
        return False

    def __str__(self) -> str:
        if self.is_soft:
            return f"soft revoked ({self.timestamp.isoformat()})"
        if self.is_hard:
            return "hard revoked"
        return "not revoked"
