"""
Unit tests for password hashing and session tokens
"""
from datetime import datetime, timedelta

from jose import jwt

from toolhub.core.security import (
    create_token,
    decode_token,
    generate_reset_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_is_not_plaintext(self):
        hashed = hash_password("secret123", rounds=4)
        assert hashed != "secret123"
        assert hashed.startswith("$2")

    def test_hash_uses_fresh_salt(self):
        assert hash_password("secret123", rounds=4) != hash_password("secret123", rounds=4)

    def test_verify_correct_and_incorrect(self):
        hashed = hash_password("secret123", rounds=4)
        assert verify_password("secret123", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_long_passwords_are_truncated_consistently(self):
        """bcrypt only sees the first 72 bytes"""
        base = "a" * 72
        hashed = hash_password(base + "tail-one", rounds=4)
        assert verify_password(base + "tail-two", hashed) is True

    def test_malformed_hash_is_rejected(self):
        assert verify_password("secret123", "not-a-bcrypt-hash") is False
        assert verify_password("secret123", None) is False

    def test_non_string_password_is_rejected(self):
        hashed = hash_password("12345678", rounds=4)
        assert verify_password(12345678, hashed) is False
        assert verify_password(b"12345678", hashed) is False


class TestTokens:
    """Test JWT creation and decoding"""

    def test_round_trip_keeps_claims(self):
        token = create_token({"id": "abc", "role": "user"}, "s3cret")
        claims = decode_token(token, "s3cret")
        assert claims["id"] == "abc"
        assert claims["role"] == "user"
        assert claims["exp"] > claims["iat"]

    def test_wrong_secret_returns_none(self):
        token = create_token({"id": "abc"}, "s3cret")
        assert decode_token(token, "other") is None

    def test_expired_token_returns_none(self):
        past = datetime.utcnow() - timedelta(hours=2)
        token = jwt.encode({"id": "abc", "exp": past}, "s3cret", algorithm="HS256")
        assert decode_token(token, "s3cret") is None

    def test_missing_token_returns_none(self):
        assert decode_token(None, "s3cret") is None
        assert decode_token("", "s3cret") is None

    def test_reset_tokens_are_unique(self):
        assert generate_reset_token() != generate_reset_token()
        assert len(generate_reset_token()) >= 32
