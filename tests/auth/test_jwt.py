"""Tests for JWT encoding and verification."""

import uuid
from datetime import timedelta

import jwt
import pytest

from vidtube.auth.jwt import TokenConfig, TokenService, token_digest
from vidtube.db.models import User
from vidtube.errors import AppError, ErrorKind


def _user() -> User:
    return User(id=uuid.uuid4(), username="alice", email="alice@example.com")


@pytest.fixture
def service() -> TokenService:
    return TokenService(TokenConfig(access_secret="a" * 40, refresh_secret="r" * 40))


class TestAccessToken:
    def test_create_and_verify(self, service: TokenService):
        user = _user()
        token = service.create_access_token(user)
        payload = service.decode(token, expected_type="access")
        assert payload["sub"] == str(user.id)
        assert payload["username"] == "alice"
        assert payload["email"] == "alice@example.com"
        assert payload["type"] == "access"
        assert payload["iss"] == "vidtube"
        assert service.verify_access(token) == user.id

    def test_refresh_token_is_not_an_access_token(self, service: TokenService):
        token = service.create_refresh_token(uuid.uuid4())
        with pytest.raises(jwt.InvalidTokenError):
            service.decode(token, expected_type="access")
        with pytest.raises(AppError) as exc_info:
            service.verify_access(token)
        assert exc_info.value.kind is ErrorKind.UNAUTHORIZED

    def test_wrong_type_rejected(self):
        # Same secret for both kinds, so only the type claim tells them apart
        shared = TokenService(TokenConfig(access_secret="s" * 40, refresh_secret="s" * 40))
        token = shared.create_refresh_token(uuid.uuid4())
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            shared.decode(token, expected_type="access")

    def test_expired_rejected(self):
        expired = TokenService(
            TokenConfig(access_secret="a" * 40, refresh_secret="r" * 40, access_ttl=timedelta(seconds=-1))
        )
        token = expired.create_access_token(_user())
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            expired.decode(token, expected_type="access")

    def test_foreign_signature_rejected(self, service: TokenService):
        other = TokenService(TokenConfig(access_secret="x" * 40, refresh_secret="y" * 40))
        token = other.create_access_token(_user())
        with pytest.raises(AppError):
            service.verify_access(token)

    def test_garbage_rejected(self, service: TokenService):
        with pytest.raises(AppError) as exc_info:
            service.verify_access("not.a.jwt")
        assert exc_info.value.message == "Invalid access token"


class TestRefreshToken:
    def test_create_includes_jti(self, service: TokenService):
        user_id = uuid.uuid4()
        payload = service.decode(service.create_refresh_token(user_id), expected_type="refresh")
        assert payload["sub"] == str(user_id)
        assert payload["type"] == "refresh"
        assert payload["jti"]

    def test_tokens_issued_back_to_back_differ(self, service: TokenService):
        user_id = uuid.uuid4()
        first = service.create_refresh_token(user_id)
        second = service.create_refresh_token(user_id)
        assert first != second
        assert token_digest(first) != token_digest(second)

    def test_digest_is_sha256_hex(self):
        digest = token_digest("abc")
        assert len(digest) == 64
        assert digest == token_digest("abc")
