"""
Credential codec tests: bcrypt hashing, verification and the 72-byte limit.
"""
import pytest

from knowledge_base.auth.passwords import MAX_SECRET_BYTES, PasswordHasher
from knowledge_base.errors import EncodingError, ValidationError


@pytest.fixture(scope="module")
def fast_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


def test_hash_then_verify_round_trip(fast_hasher: PasswordHasher):
    hashed = fast_hasher.hash("correct horse battery staple")
    assert hashed != "correct horse battery staple"
    assert fast_hasher.verify("correct horse battery staple", hashed) is True


def test_verify_rejects_wrong_secret(fast_hasher: PasswordHasher):
    hashed = fast_hasher.hash("password123")
    assert fast_hasher.verify("password124", hashed) is False


def test_hash_is_salted(fast_hasher: PasswordHasher):
    """Hashing the same secret twice yields different strings that both verify."""
    first = fast_hasher.hash("same-secret")
    second = fast_hasher.hash("same-secret")
    assert first != second
    assert fast_hasher.verify("same-secret", first)
    assert fast_hasher.verify("same-secret", second)


def test_hash_records_cost_factor():
    hashed = PasswordHasher(rounds=5).hash("secret")
    assert hashed.startswith("$2b$05$")


def test_unicode_secret_round_trip(fast_hasher: PasswordHasher):
    hashed = fast_hasher.hash("pässwörd-日本")
    assert fast_hasher.verify("pässwörd-日本", hashed)
    assert not fast_hasher.verify("passwort-日本", hashed)


def test_secret_at_byte_limit_is_accepted(fast_hasher: PasswordHasher):
    secret = "a" * MAX_SECRET_BYTES
    assert fast_hasher.verify(secret, fast_hasher.hash(secret))


def test_secret_over_byte_limit_raises_encoding_error(fast_hasher: PasswordHasher):
    with pytest.raises(EncodingError):
        fast_hasher.hash("a" * (MAX_SECRET_BYTES + 1))


def test_encoding_error_is_a_validation_error():
    assert issubclass(EncodingError, ValidationError)
    assert EncodingError().code == "BAD_USER_INPUT"


def test_multibyte_secret_counts_bytes_not_characters(fast_hasher: PasswordHasher):
    # 25 three-byte characters = 75 bytes.
    with pytest.raises(EncodingError):
        fast_hasher.hash("日" * 25)


def test_verify_over_limit_secret_is_false(fast_hasher: PasswordHasher):
    hashed = fast_hasher.hash("short")
    assert fast_hasher.verify("a" * 100, hashed) is False


def test_verify_malformed_hash_is_false(fast_hasher: PasswordHasher):
    assert fast_hasher.verify("secret", "not-a-bcrypt-hash") is False
    assert fast_hasher.verify("secret", "") is False


def test_dummy_verify_does_not_raise(fast_hasher: PasswordHasher):
    assert fast_hasher.dummy_verify("anything") is None
