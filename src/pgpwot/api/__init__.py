"""pgpwot API module - High-level Web of Trust operations."""

from pgpwot.api.wot import (
    WebOfTrust,
    AuthenticationLevel,
    AuthenticationResult,
    Binding,
    BindingList,
    PathCheckResult,
)

__all__ = [
    "WebOfTrust",
    "AuthenticationLevel",
    "AuthenticationResult",
    "Binding",
    "BindingList",
    "PathCheckResult",
]
