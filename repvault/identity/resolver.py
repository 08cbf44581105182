"""Caller identity and entitlement tier resolution.

Precedence for the tier:
1. Tier carried by the trusted claims
2. Profile record lookup (only when the claims carry no tier)
3. Free tier by default
"""

from __future__ import annotations

from loguru import logger

from repvault.config.settings import settings
from repvault.core.errors import IdentityMismatch, InvalidInput, Unauthorized
from repvault.identity.claims import Claims, subject_from_claims, tier_from_claims
from repvault.identity.profile_store import ProfileRecord, ProfileStore
from repvault.identity.types import IdentityContext, Tier, TierSource, normalize_tier


def tier_from_profile(profile: ProfileRecord | None) -> Tier | None:
    if profile is None:
        return None
    # The explicit flag outranks free-text plan fields.
    if profile.is_premium is True:
        return Tier.PREMIUM
    return normalize_tier(profile.subscription_tier) or normalize_tier(profile.plan)


class IdentityResolver:
    def __init__(self, profile_store: ProfileStore, require_trusted_identity: bool | None = None) -> None:
        self._profile_store = profile_store
        self._require_trusted_identity = (
            settings.require_trusted_identity if require_trusted_identity is None else require_trusted_identity
        )

    def resolve(self, claims: Claims | None = None, caller_supplied_id: object = None) -> IdentityContext:
        """Resolve the caller's identity and tier.

        Args:
            claims: Trusted claims from a verified token, or None if unauthenticated
            caller_supplied_id: ``userId`` from the request body, if any

        Returns:
            IdentityContext for this request

        Raises:
            Unauthorized: Trusted identity is required but absent
            IdentityMismatch: Trusted and caller-supplied ids disagree
            InvalidInput: No usable identifier at all
        """
        trusted_id = subject_from_claims(claims)
        supplied_id = self._normalize_supplied_id(caller_supplied_id)

        if self._require_trusted_identity and not trusted_id:
            raise Unauthorized("A valid identity token is required.")

        if trusted_id and supplied_id and trusted_id != supplied_id:
            logger.warning(
                "Caller-supplied userId does not match token subject",
                event="identity_mismatch",
                trusted_id=trusted_id,
            )
            raise IdentityMismatch("Authenticated user does not match request userId.")

        user_id = trusted_id or supplied_id
        if not user_id:
            raise InvalidInput("Missing required field: userId.")

        claim_tier = tier_from_claims(claims)
        if claim_tier is not None:
            return IdentityContext(id=user_id, tier=claim_tier, tier_source=TierSource.TRUSTED_CLAIM)

        profile_tier = tier_from_profile(self._profile_store.get(user_id))
        if profile_tier is not None:
            return IdentityContext(id=user_id, tier=profile_tier, tier_source=TierSource.PROFILE_RECORD)

        return IdentityContext(id=user_id, tier=Tier.FREE, tier_source=TierSource.DEFAULT)

    @staticmethod
    def _normalize_supplied_id(value: object) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise InvalidInput("userId must be a string.")
        return value.strip() or None
