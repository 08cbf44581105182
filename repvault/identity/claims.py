"""Trusted claim extraction.

Claims arrive as a flat mapping decoded from a verified bearer token. The
same signal can live under several claim names depending on the identity
provider (Cognito custom attributes, plain JWT fields). Each signal is read
through an ordered tuple of named extractors; the first one that returns a
value wins.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import jwt
from loguru import logger

from repvault.config.settings import settings
from repvault.core.errors import Unauthorized
from repvault.identity.types import Tier, normalize_tier

T = TypeVar("T")

Claims = Mapping[str, Any]

ADMIN_FLAG_VALUES = frozenset({"admin", "true", "1", "yes"})


@dataclass(frozen=True)
class ClaimExtractor(Generic[T]):
    """Reads one optional typed value out of a claims mapping."""

    name: str
    extract: Callable[[Claims], T | None]


def first_match(extractors: Sequence[ClaimExtractor[T]], claims: Claims | None) -> T | None:
    if not claims:
        return None
    for extractor in extractors:
        value = extractor.extract(claims)
        if value is not None:
            return value
    return None


def _non_blank_string(claim: str) -> ClaimExtractor[str]:
    def extract(claims: Claims) -> str | None:
        value = claims.get(claim)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    return ClaimExtractor(name=claim, extract=extract)


def _tier(claim: str) -> ClaimExtractor[Tier]:
    return ClaimExtractor(name=claim, extract=lambda claims: normalize_tier(claims.get(claim)))


def _group_membership(claim: str, group: str) -> ClaimExtractor[bool]:
    def extract(claims: Claims) -> bool | None:
        value = claims.get(claim)
        if isinstance(value, str):
            groups = [g.strip().lower() for g in value.split(",")]
        elif isinstance(value, list | tuple):
            groups = [g.strip().lower() for g in value if isinstance(g, str)]
        else:
            return None
        return True if group in groups else None

    return ClaimExtractor(name=claim, extract=extract)


def _admin_flag(claim: str) -> ClaimExtractor[bool]:
    def extract(claims: Claims) -> bool | None:
        value = claims.get(claim)
        if isinstance(value, bool):
            return True if value else None
        if isinstance(value, str) and value.strip().lower() in ADMIN_FLAG_VALUES:
            return True
        return None

    return ClaimExtractor(name=claim, extract=extract)


SUBJECT_EXTRACTORS: tuple[ClaimExtractor[str], ...] = (
    _non_blank_string("sub"),
    _non_blank_string("cognito:username"),
    _non_blank_string("username"),
    _non_blank_string("user_id"),
)

TIER_EXTRACTORS: tuple[ClaimExtractor[Tier], ...] = (
    _tier("custom:tier"),
    _tier("tier"),
    _tier("plan"),
    _tier("custom:plan"),
    _tier("isPremium"),
    _tier("custom:isPremium"),
)

ADMIN_EXTRACTORS: tuple[ClaimExtractor[bool], ...] = (
    _group_membership("cognito:groups", "admin"),
    _admin_flag("custom:role"),
    _admin_flag("role"),
    _admin_flag("isAdmin"),
    _admin_flag("custom:isAdmin"),
)


def subject_from_claims(claims: Claims | None) -> str | None:
    return first_match(SUBJECT_EXTRACTORS, claims)


def tier_from_claims(claims: Claims | None) -> Tier | None:
    return first_match(TIER_EXTRACTORS, claims)


def is_admin(claims: Claims | None) -> bool:
    return first_match(ADMIN_EXTRACTORS, claims) is True


def decode_bearer_claims(authorization: str | None) -> dict[str, Any] | None:
    """Decode trusted claims from an ``Authorization: Bearer`` header.

    Returns None when no header is present. When AUTH_SECRET_KEY is not
    configured the payload is decoded without signature verification
    (local development only).

    Raises:
        Unauthorized: If the header is malformed or the token is invalid or expired
    """
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized("Invalid Authorization header format.")

    try:
        if not settings.auth_secret_key:
            logger.warning("AUTH_SECRET_KEY not set - decoding token without verification (dev mode)")
            payload = jwt.decode(token, options={"verify_signature": False})
        else:
            payload = jwt.decode(token, settings.auth_secret_key, algorithms=[settings.auth_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise Unauthorized("Token expired.") from e
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise Unauthorized("Invalid token.") from e

    if not isinstance(payload, dict):
        raise Unauthorized("Invalid token.")
    return payload
