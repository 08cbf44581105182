"""Tests for identity and tier resolution.

Tests cover:
- Identity precedence and consistency checks
- Tier precedence (claims > profile > default)
- Profile lookup only when claims carry no tier
"""

import pytest

from repvault.core.errors import IdentityMismatch, InternalError, InvalidInput, Unauthorized
from repvault.identity.resolver import IdentityResolver
from repvault.identity.types import Tier, TierSource


@pytest.fixture
def resolver(profile_store) -> IdentityResolver:
    return IdentityResolver(profile_store, require_trusted_identity=False)


def test_subject_without_tier_or_profile_defaults_to_free(resolver):
    context = resolver.resolve({"sub": "user-123"}, None)

    assert context.id == "user-123"
    assert context.tier == Tier.FREE
    assert context.tier_source == TierSource.DEFAULT


def test_claim_tier_skips_profile_lookup(resolver, profile_store):
    profile_store.add("user-1", isPremium="false", plan="free")

    context = resolver.resolve({"sub": "user-1", "custom:tier": "Gold"}, None)

    assert context.tier == Tier.PREMIUM
    assert context.tier_source == TierSource.TRUSTED_CLAIM
    assert profile_store.lookups == []


def test_profile_premium_flag_wins_over_plan(resolver, profile_store):
    profile_store.add("user-1", isPremium="true", plan="free")

    context = resolver.resolve({"sub": "user-1"}, None)

    assert context.tier == Tier.PREMIUM
    assert context.tier_source == TierSource.PROFILE_RECORD
    assert profile_store.lookups == ["user-1"]


def test_profile_subscription_tier_then_plan(resolver, profile_store):
    profile_store.add("a", subscriptionTier="Basic", plan="pro")
    profile_store.add("b", subscriptionTier="mystery", plan="pro")
    profile_store.add("c", isPremium="false", subscriptionTier="mystery")

    assert resolver.resolve(None, "a").tier == Tier.FREE
    assert resolver.resolve(None, "b").tier == Tier.PREMIUM

    unresolved = resolver.resolve(None, "c")
    assert unresolved.tier == Tier.FREE
    assert unresolved.tier_source == TierSource.DEFAULT


def test_caller_supplied_id_used_without_claims(resolver):
    context = resolver.resolve(None, "  body-user  ")
    assert context.id == "body-user"


def test_matching_ids_are_accepted(resolver):
    assert resolver.resolve({"sub": "user-1"}, "user-1").id == "user-1"


def test_mismatched_ids_rejected(resolver):
    with pytest.raises(IdentityMismatch):
        resolver.resolve({"sub": "user-1"}, "user-2")


def test_missing_identifier_rejected(resolver):
    with pytest.raises(InvalidInput):
        resolver.resolve(None, None)
    with pytest.raises(InvalidInput):
        resolver.resolve({"sub": ""}, "   ")


def test_non_string_caller_id_rejected(resolver):
    with pytest.raises(InvalidInput):
        resolver.resolve(None, 12345)


def test_trusted_identity_required(profile_store):
    strict = IdentityResolver(profile_store, require_trusted_identity=True)

    with pytest.raises(Unauthorized):
        strict.resolve(None, "body-user")

    assert strict.resolve({"sub": "user-1"}, None).id == "user-1"


def test_profile_store_failure_propagates(resolver, profile_store, monkeypatch):
    def broken(_user_id):
        raise InternalError("Storage is temporarily unavailable.")

    monkeypatch.setattr(profile_store, "get", broken)

    with pytest.raises(InternalError):
        resolver.resolve({"sub": "user-1"}, None)
