# -*- encoding: utf-8 -*-
"""
pgpwot Node - Synopsis of a certificate in the trust network.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from pgpwot.network.primitives import Identifier, RevocationState, to_seconds


@dataclass(frozen=True, eq=False)
class Node:
    """
    A certificate as seen by the Web of Trust algorithm.

    Node identity is the identifier: two nodes with the same fingerprint
    are equal regardless of their other attributes.

    Attributes:
        fingerprint: Identifier of the certificate
        expiration_time: when the certificate stops being usable, if ever
        revocation_state: revocation of the certificate itself
        user_ids: user IDs on the certificate mapped to their own revocation
            state (independent of the certificate's revocation)
    """
    fingerprint: Identifier
    expiration_time: Optional[datetime] = None
    revocation_state: RevocationState = field(default_factory=RevocationState.not_revoked)
    user_ids: Mapping[str, RevocationState] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.fingerprint, Identifier):
            object.__setattr__(self, "fingerprint", Identifier(self.fingerprint))
        object.__setattr__(self, "user_ids", MappingProxyType(dict(self.user_ids)))

    def is_expired(self, reference_time: datetime) -> bool:
        if self.expiration_time is None:
            return False
        return to_seconds(self.expiration_time) <= to_seconds(reference_time)

    def with_user_id(self, user_id: str,
                     revocation: Optional[RevocationState] = None) -> "Node":
        """Copy of this node carrying an additional user ID."""
        user_ids = dict(self.user_ids)
        user_ids[user_id] = revocation or RevocationState.not_revoked()
        return Node(self.fingerprint, self.expiration_time, self.revocation_state, user_ids)

    @property
    def primary_user_id(self) -> Optional[str]:
        """First user ID on the certificate, used for display."""
        return next(iter(self.user_ids), None)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.fingerprint == other.fingerprint

    def __hash__(self) -> int:
        return hash(self.fingerprint)

    def __str__(self) -> str:
        uid = self.primary_user_id
        return f"{self.fingerprint}" if uid is None else f"{self.fingerprint} ({uid})"
