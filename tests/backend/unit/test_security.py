"""
Unit tests for core.security module.
Tests password hashing, JWT token creation/validation.
"""
import pytest
import jwt
from tutor.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_returns_different_hash_each_time(self):
        """Password hashing should produce different hashes (salt included)."""
        assert hash_password("secret123") != hash_password("secret123")

    def test_hash_is_argon2_and_not_plain_text(self):
        hashed = hash_password("secret123")
        assert hashed.startswith("$argon2")
        assert "secret123" not in hashed

    def test_verify_password_correct_and_incorrect(self):
        hashed = hash_password("secret123")
        assert verify_password("secret123", hashed) is True
        assert verify_password("secret124", hashed) is False


class TestJWTTokens:
    """Tests for JWT token creation and validation."""

    def test_token_round_trips_user_id(self):
        token = create_access_token("user-456")
        payload = decode_access_token(token)
        assert payload["sub"] == "user-456"
        assert "iat" in payload and "exp" in payload

    def test_token_expiration_time(self):
        """Token expiration should match configured time."""
        payload = decode_access_token(create_access_token("user-time"))
        diff_minutes = (payload["exp"] - payload["iat"]) / 60
        assert abs(diff_minutes - ACCESS_TOKEN_EXPIRE_MINUTES) < 1

    def test_decode_access_token_invalid_token(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token("invalid.token.here")

    def test_decode_rejects_wrong_secret(self):
        token = jwt.encode({"sub": "user-1"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidSignatureError):
            decode_access_token(token)
