from dataclasses import dataclass
from enum import StrEnum


class Tier(StrEnum):
    FREE = "free"
    PREMIUM = "premium"


class TierSource(StrEnum):
    TRUSTED_CLAIM = "trusted_claim"
    PROFILE_RECORD = "profile_record"
    DEFAULT = "default"


@dataclass(frozen=True)
class IdentityContext:
    """Resolved caller identity for one request.

    Attributes:
        id: Non-empty caller identifier
        tier: Entitlement tier used for quota ceilings
        tier_source: Where the tier came from
    """

    id: str
    tier: Tier
    tier_source: TierSource


PREMIUM_SYNONYMS = frozenset({"premium", "pro", "plus", "paid", "gold", "true"})
FREE_SYNONYMS = frozenset({"free", "basic", "false"})


def normalize_tier(value: object) -> Tier | None:
    """Map a loosely-typed tier signal onto a Tier.

    Booleans map directly (True -> premium). Strings are matched
    case-insensitively against known synonyms. Anything else is unknown.
    """
    if isinstance(value, bool):
        return Tier.PREMIUM if value else Tier.FREE
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    if normalized in PREMIUM_SYNONYMS:
        return Tier.PREMIUM
    if normalized in FREE_SYNONYMS:
        return Tier.FREE
    return None
