"""Caller identity: trusted claim extraction, profile lookup and tier resolution."""

from repvault.identity.resolver import IdentityResolver
from repvault.identity.types import IdentityContext, Tier, TierSource

__all__ = [
    "IdentityContext",
    "IdentityResolver",
    "Tier",
    "TierSource",
]
