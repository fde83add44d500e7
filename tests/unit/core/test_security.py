"""
Unit tests for security utilities (password hashing, tokens).

No database or external dependencies.
"""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from warden.core import security
from warden.core.security import TOKEN_TYPE_ACCESS, TOKEN_TYPE_REFRESH, TokenService
from warden.exceptions import (
    AuthenticationError,
    InvalidSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    TokenExpiredError,
)

SECRET = "unit-test-secret-key-with-more-than-32-chars"


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(
        secret_key=SECRET,
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
    )


class TestPasswordHashing:
    """Test password hashing with Argon2id."""

    def test_hash_password_returns_argon2id_string(self):
        """Test that hash_password returns an Argon2id hash."""
        hashed = security.hash_password("TestPassword123!")

        assert isinstance(hashed, str)
        assert hashed.startswith("$argon2id$")

    def test_hash_password_different_for_same_password(self):
        """Test that hashing the same password twice produces different hashes (due to salt)."""
        assert security.hash_password("TestPassword123!") != security.hash_password(
            "TestPassword123!"
        )

    def test_verify_password_correct_password(self):
        hashed = security.hash_password("TestPassword123!")
        assert security.verify_password("TestPassword123!", hashed) is True

    def test_verify_password_incorrect_password(self):
        hashed = security.hash_password("TestPassword123!")
        assert security.verify_password("WrongPassword123!", hashed) is False

    def test_verify_password_invalid_hash(self):
        """Test that verify_password returns False for a malformed hash."""
        assert security.verify_password("password", "not_a_valid_argon2_hash") is False


class TestTokenIssue:
    """Test token issuing."""

    def test_access_token_claims(self, tokens: TokenService):
        """Test that an access token carries subject, type and expiry."""
        user_id = uuid.uuid4()
        issued = tokens.issue_access_token(user_id)

        claims = jwt.decode(issued.token, SECRET, algorithms=["HS256"])
        assert claims["sub"] == str(user_id)
        assert claims["type"] == TOKEN_TYPE_ACCESS
        assert "jti" in claims
        assert claims["exp"] == int(issued.expires_at.timestamp())

    def test_access_token_expires_after_ttl(self, tokens: TokenService):
        now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        issued = tokens.issue_access_token(uuid.uuid4(), now=now)
        assert issued.expires_at == now + timedelta(minutes=15)

    def test_refresh_token_type(self, tokens: TokenService):
        issued = tokens.issue_refresh_token(uuid.uuid4())
        claims = jwt.get_unverified_claims(issued.token)
        assert claims["type"] == TOKEN_TYPE_REFRESH

    def test_tokens_issued_together_are_unique(self, tokens: TokenService):
        """Test that two tokens issued in the same second still differ."""
        user_id = uuid.uuid4()
        first = tokens.issue_access_token(user_id)
        second = tokens.issue_access_token(user_id)
        assert first.token != second.token

    def test_token_pair(self, tokens: TokenService):
        pair = tokens.issue_token_pair(uuid.uuid4())
        assert pair.access.expires_at < pair.refresh.expires_at


class TestTokenVerify:
    """Test token verification and its failure modes."""

    def test_round_trip(self, tokens: TokenService):
        """Test that verifying an issued access token yields its user id."""
        user_id = uuid.uuid4()
        assert tokens.verify_token(tokens.issue_access_token(user_id).token) == user_id

    def test_round_trip_is_repeatable(self, tokens: TokenService):
        user_id = uuid.uuid4()
        token = tokens.issue_access_token(user_id).token
        assert [tokens.verify_token(token) for _ in range(3)] == [user_id] * 3

    def test_expired_token(self, tokens: TokenService):
        """Test that a token past its expiry fails with TokenExpiredError."""
        issued = tokens.issue_access_token(
            uuid.uuid4(), now=datetime.now(UTC) - timedelta(hours=1)
        )
        with pytest.raises(TokenExpiredError):
            tokens.verify_token(issued.token)

    def test_malformed_token(self, tokens: TokenService):
        with pytest.raises(MalformedTokenError):
            tokens.verify_token("not-a-token")

    def test_forged_signature(self, tokens: TokenService):
        """Test that a token signed with another key is rejected."""
        forger = TokenService(secret_key="another-secret-key-of-sufficient-length!")
        token = forger.issue_access_token(uuid.uuid4()).token

        with pytest.raises(InvalidSignatureError):
            tokens.verify_token(token)

    def test_refresh_token_rejected_as_access_token(self, tokens: TokenService):
        token = tokens.issue_refresh_token(uuid.uuid4()).token
        with pytest.raises(InvalidTokenError, match="Invalid token type"):
            tokens.verify_token(token)

    def test_access_token_rejected_as_refresh_token(self, tokens: TokenService):
        token = tokens.issue_access_token(uuid.uuid4()).token
        with pytest.raises(InvalidTokenError):
            tokens.verify_token(token, expected_type=TOKEN_TYPE_REFRESH)

    def test_invalid_subject(self, tokens: TokenService):
        token = jwt.encode(
            {
                "sub": "not-a-uuid",
                "type": TOKEN_TYPE_ACCESS,
                "exp": datetime.now(UTC) + timedelta(minutes=5),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            tokens.verify_token(token)

    def test_all_failures_are_authentication_errors(self, tokens: TokenService):
        """Test that every verification failure maps to code 401."""
        with pytest.raises(AuthenticationError) as exc_info:
            tokens.verify_token("garbage")
        assert exc_info.value.code == 401


class TestTokenRefresh:
    """Test refresh token exchange."""

    def test_refresh_issues_new_pair_for_same_user(self, tokens: TokenService):
        user_id = uuid.uuid4()
        refresh = tokens.issue_refresh_token(user_id).token

        pair = tokens.refresh_access_token(refresh)

        assert tokens.verify_token(pair.access.token) == user_id
        assert pair.refresh.token != refresh

    def test_refresh_with_access_token_fails(self, tokens: TokenService):
        access = tokens.issue_access_token(uuid.uuid4()).token
        with pytest.raises(InvalidTokenError):
            tokens.refresh_access_token(access)

    def test_refresh_with_expired_token_fails(self, tokens: TokenService):
        refresh = tokens.issue_refresh_token(
            uuid.uuid4(), now=datetime.now(UTC) - timedelta(days=8)
        ).token
        with pytest.raises(TokenExpiredError):
            tokens.refresh_access_token(refresh)
