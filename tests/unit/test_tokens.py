from __future__ import annotations

import base64
import json
import time

from jose import jwt

from common.tokens import decode_claims, validate_jwt


def _token(**claims) -> str:
    return jwt.encode(claims, "not-checked", algorithm="HS256")


def _b64(obj) -> str:
    raw = json.dumps(obj).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def test_valid_token_with_future_exp():
    assert validate_jwt(_token(exp=int(time.time()) + 3600, role="viewer")) is True


def test_expired_token_is_rejected():
    assert validate_jwt(_token(exp=int(time.time()) - 10)) is False


def test_exp_boundary_uses_supplied_clock():
    tok = _token(exp=1_000)
    assert validate_jwt(tok, now=1_000) is True
    assert validate_jwt(tok, now=1_000.5) is False
    assert validate_jwt(tok, now=999) is True


def test_missing_or_unusable_exp_is_rejected():
    assert validate_jwt(_token(role="viewer")) is False
    assert validate_jwt(_token(exp=0)) is False
    assert validate_jwt(_token(exp="tomorrow")) is False
    assert validate_jwt(_token(exp=True)) is False


def test_structurally_invalid_tokens_are_rejected():
    assert validate_jwt(None) is False
    assert validate_jwt("") is False
    assert validate_jwt("a.b") is False
    assert validate_jwt("a.b.c.d") is False
    assert validate_jwt("a.!!!.c") is False

    header = _b64({"alg": "HS256", "typ": "JWT"})
    not_object = f"{header}.{_b64([1, 2, 3])}.sig"
    assert validate_jwt(not_object) is False


def test_signature_is_not_verified():
    header = _b64({"alg": "HS256", "typ": "JWT"})
    payload = _b64({"exp": int(time.time()) + 60, "user_id": "123"})
    forged = f"{header}.{payload}.bogus-signature"

    assert validate_jwt(forged) is True
    assert decode_claims(forged)["user_id"] == "123"


def test_decode_claims_returns_payload_or_none():
    tok = _token(role="broadcaster", opaque_user_id="U123", channel_id="99")
    claims = decode_claims(tok)

    assert claims is not None
    assert claims["role"] == "broadcaster"
    assert claims["channel_id"] == "99"
    assert decode_claims("garbage") is None
