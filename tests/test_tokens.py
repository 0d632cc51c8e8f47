"""
Session token codec tests: issue/decode round trip, expiry, tampering and
Bearer prefix handling.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from knowledge_base.auth.claims import IdentityClaim, Role
from knowledge_base.auth.tokens import TokenCodec, strip_bearer

SECRET = "unit-test-secret-key-of-sufficient-length"


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(SECRET)


@pytest.fixture
def claim() -> IdentityClaim:
    return IdentityClaim(subject_id=42, email="ada@example.com", role=Role.EDITOR)


def test_issue_then_decode_round_trip(codec: TokenCodec, claim: IdentityClaim):
    token = codec.issue(claim)
    assert codec.decode(token) == claim


@pytest.mark.parametrize("role", list(Role))
def test_round_trip_preserves_every_role(codec: TokenCodec, role: Role):
    claim = IdentityClaim(subject_id=1, email="r@example.com", role=role)
    assert codec.decode(codec.issue(claim)).role is role


def test_bearer_prefix_is_equivalent(codec: TokenCodec, claim: IdentityClaim):
    token = codec.issue(claim)
    assert codec.decode(f"Bearer {token}") == codec.decode(token)
    assert codec.decode(f"bearer   {token}  ") == claim


@pytest.mark.parametrize("value", [None, "", "   ", "Bearer ", "garbage", "a.b.c"])
def test_missing_or_garbage_token_yields_none(codec: TokenCodec, value):
    assert codec.decode(value) is None


def test_expired_token_yields_none(codec: TokenCodec, claim: IdentityClaim):
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = codec.issue(claim, now=issued)
    assert codec.decode(token) is None


def test_token_within_ttl_is_accepted(claim: IdentityClaim):
    codec = TokenCodec(SECRET, ttl=timedelta(hours=1))
    issued = datetime.now(timezone.utc) - timedelta(minutes=59)
    assert codec.decode(codec.issue(claim, now=issued)) == claim


def test_expiry_is_seven_days_by_default(codec: TokenCodec, claim: IdentityClaim):
    issued = datetime(2020, 1, 1, tzinfo=timezone.utc)
    payload = jwt.decode(
        codec.issue(claim, now=issued),
        SECRET,
        algorithms=["HS256"],
        options={"verify_exp": False},
    )
    assert payload["exp"] - payload["iat"] == 7 * 24 * 3600
    assert payload["sub"] == "42"
    assert payload["role"] == "EDITOR"


def test_token_signed_with_other_key_yields_none(claim: IdentityClaim):
    token = TokenCodec("another-secret-key-of-sufficient-length").issue(claim)
    assert TokenCodec(SECRET).decode(token) is None


def test_tampered_payload_yields_none(codec: TokenCodec, claim: IdentityClaim):
    header, _, signature = codec.issue(claim).split(".")
    forged = jwt.encode(
        {"sub": "1", "email": "x@example.com", "role": "ADMIN", "iat": 0, "exp": 9999999999},
        "some-other-signing-key-of-sufficient-length",
        algorithm="HS256",
    ).split(".")[1]
    assert codec.decode(f"{header}.{forged}.{signature}") is None


def test_token_with_unknown_role_yields_none(codec: TokenCodec):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "email": "x@example.com", "role": "SUPERUSER", "iat": now, "exp": now + timedelta(hours=1)},
        SECRET,
        algorithm="HS256",
    )
    assert codec.decode(token) is None


def test_token_missing_required_claim_yields_none(codec: TokenCodec):
    token = jwt.encode({"sub": "1", "email": "x@example.com", "role": "VIEWER"}, SECRET, algorithm="HS256")
    assert codec.decode(token) is None


def test_repr_hides_secret(codec: TokenCodec):
    assert SECRET not in repr(codec)


@pytest.mark.parametrize(
    ("credential", "expected"),
    [
        ("Bearer abc", "abc"),
        ("BEARER abc", "abc"),
        ("abc", "abc"),
        ("  abc  ", "abc"),
        ("", None),
        (None, None),
        ("Bearer   ", None),
    ],
)
def test_strip_bearer(credential, expected):
    assert strip_bearer(credential) == expected
