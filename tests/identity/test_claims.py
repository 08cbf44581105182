import jwt
import pytest

from repvault.config.settings import settings
from repvault.core.errors import Unauthorized
from repvault.identity.claims import decode_bearer_claims, is_admin, subject_from_claims, tier_from_claims
from repvault.identity.types import Tier, normalize_tier

SECRET = "test-secret-key-for-hs256-signing-0001"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("premium", Tier.PREMIUM),
        (" PRO ", Tier.PREMIUM),
        ("Plus", Tier.PREMIUM),
        ("paid", Tier.PREMIUM),
        ("gold", Tier.PREMIUM),
        ("TRUE", Tier.PREMIUM),
        (True, Tier.PREMIUM),
        ("free", Tier.FREE),
        ("Basic", Tier.FREE),
        ("false", Tier.FREE),
        (False, Tier.FREE),
        ("platinum", None),
        (1, None),
        (None, None),
    ],
)
def test_normalize_tier(value, expected):
    assert normalize_tier(value) == expected


def test_subject_prefers_sub_then_falls_back():
    assert subject_from_claims({"sub": " user-1 ", "username": "other"}) == "user-1"
    assert subject_from_claims({"sub": "   ", "cognito:username": "cog-user"}) == "cog-user"
    assert subject_from_claims({"user_id": "legacy"}) == "legacy"
    assert subject_from_claims({"sub": 42}) is None
    assert subject_from_claims(None) is None


def test_tier_claims_evaluated_in_priority_order():
    claims = {"custom:tier": "unknown", "tier": "basic", "plan": "gold"}
    assert tier_from_claims(claims) == Tier.FREE
    assert tier_from_claims({"custom:isPremium": "true"}) == Tier.PREMIUM
    assert tier_from_claims({"sub": "user-1"}) is None


@pytest.mark.parametrize(
    "claims",
    [
        {"cognito:groups": ["users", "Admin"]},
        {"cognito:groups": "users, admin"},
        {"custom:role": "ADMIN"},
        {"role": "yes"},
        {"isAdmin": True},
        {"custom:isAdmin": "1"},
        {"role": "user", "isAdmin": "true"},
    ],
)
def test_admin_recognized(claims):
    assert is_admin(claims) is True


@pytest.mark.parametrize(
    "claims",
    [
        None,
        {},
        {"sub": "user-1"},
        {"cognito:groups": ["administrators"]},
        {"role": "editor", "isAdmin": False},
        {"custom:role": "0"},
    ],
)
def test_admin_not_recognized(claims):
    assert is_admin(claims) is False


def test_decode_bearer_claims_without_header():
    assert decode_bearer_claims(None) is None


def test_decode_bearer_claims_verifies_signature(monkeypatch):
    monkeypatch.setattr(settings, "auth_secret_key", SECRET)
    token = jwt.encode({"sub": "user-1", "tier": "pro"}, SECRET, algorithm="HS256")

    assert decode_bearer_claims(f"Bearer {token}") == {"sub": "user-1", "tier": "pro"}

    forged = jwt.encode({"sub": "user-1"}, "wrong-secret-key-for-hs256-signing-0002", algorithm="HS256")
    with pytest.raises(Unauthorized):
        decode_bearer_claims(f"Bearer {forged}")


def test_decode_bearer_claims_rejects_malformed_header(monkeypatch):
    monkeypatch.setattr(settings, "auth_secret_key", SECRET)
    with pytest.raises(Unauthorized):
        decode_bearer_claims("Token abc")
    with pytest.raises(Unauthorized):
        decode_bearer_claims("Bearer ")
    with pytest.raises(Unauthorized):
        decode_bearer_claims("Bearer not-a-jwt")


def test_decode_bearer_claims_dev_mode_skips_verification(monkeypatch):
    monkeypatch.setattr(settings, "auth_secret_key", "")
    token = jwt.encode({"sub": "dev-user"}, "anything-goes-key-for-hs256-signing-0003", algorithm="HS256")
    assert decode_bearer_claims(f"Bearer {token}") == {"sub": "dev-user"}
