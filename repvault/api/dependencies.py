"""FastAPI dependencies for trusted claims.

A missing Authorization header means an unauthenticated request (no
claims). A present but invalid token is rejected outright.
"""

from __future__ import annotations

from typing import Any

from fastapi import Header

from repvault.identity.claims import decode_bearer_claims


def get_trusted_claims(authorization: str | None = Header(default=None)) -> dict[str, Any] | None:
    return decode_bearer_claims(authorization)
