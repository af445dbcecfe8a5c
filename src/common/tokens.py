from __future__ import annotations

import time
from typing import Any, Dict, Optional

from jose import jwt
from jose.exceptions import JWTError


def decode_claims(token: Any) -> Optional[Dict[str, Any]]:
    """
    Return the unverified payload claims of a compact JWT.

    Signatures are never checked here; the EBS does that on its side. Returns
    None when `token` is not a three-segment string or its payload is not a
    JSON object.
    """
    if not isinstance(token, str) or len(token.split(".")) != 3:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    return claims if isinstance(claims, dict) else None


def validate_jwt(token: Any, *, now: Optional[float] = None) -> bool:
    """
    Structural and expiry check for a platform-issued JWT.

    False when the token is malformed, carries no usable `exp` claim, or
    `exp` is in the past (`now` in epoch seconds, defaults to the wall clock).
    A token expiring exactly at `now` is still accepted.
    """
    claims = decode_claims(token)
    if claims is None:
        return False

    exp = claims.get("exp")
    # bool is an int subclass but never a meaningful expiry
    if not exp or isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return False

    current = time.time() if now is None else now
    return exp >= current


__all__ = ["decode_claims", "validate_jwt"]
