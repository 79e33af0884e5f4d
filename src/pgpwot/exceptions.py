# -*- encoding: utf-8 -*-
"""
pgpwot Exceptions.

Custom exceptions for network construction, path assembly and queries.

Invariant violations indicate a bug in graph construction or in the query
engine. They are raised and never swallowed. "No path found" is not an
error: queries return an empty result instead.
"""

from dataclasses import dataclass
from typing import Optional


class WotError(Exception):
    """Base exception for all pgpwot errors."""
    pass


class InvariantViolation(WotError):
    """Raised when a structural invariant of the trust graph is violated."""
    pass


class CyclicPath(InvariantViolation):
    """Raised when appending a component would make a path revisit a certificate."""
    pass


class DepthExhausted(InvariantViolation):
    """Raised when a trust depth would drop below zero."""
    pass


class PathMismatch(InvariantViolation):
    """Raised when a component's issuer is not the current tail of the path."""
    pass


class AmountExceeded(InvariantViolation):
    """Raised when a path is recorded with more trust than it can carry."""
    pass


class EdgeMismatch(InvariantViolation):
    """Raised when a component is added to an edge between different certificates."""
    pass


class SuppressionOverflow(InvariantViolation):
    """Raised when the residual network would suppress more than an edge's capacity."""
    pass


class NetworkParseError(WotError):
    """
    Raised when a network description cannot be parsed.

    Attributes:
        line: 1-based line number of the offending input, if known
        column: 1-based column number of the offending input, if known
    """

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def to_dict(self) -> dict:
        """Convert exception to dictionary representation."""
        return {
            "error": "NetworkParseError",
            "message": str(self),
            "line": self.line,
            "column": self.column,
        }


@dataclass
class RejectionDetail:
    """
    Why a single signature was left out of the network.

    Attributes:
        issuer: fingerprint of the signing certificate
        target: fingerprint of the signed certificate
        user_id: certified user ID, or None for a delegation
        reason: human-readable explanation
    """
    issuer: str
    target: str
    reason: str
    user_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "issuer": self.issuer,
            "target": self.target,
            "user_id": self.user_id,
            "reason": self.reason,
        }


class SignatureRejected(WotError):
    """
    Raised when a signature fails policy checks during network construction.

    The loader catches this per signature, logs it and drops the signature.
    Network construction never aborts because of it.
    """

    def __init__(self, detail: RejectionDetail):
        super().__init__(detail.reason)
        self.detail = detail
