"""
Unit tests for authentication module
"""
import pytest
from datetime import timedelta
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from studypartner.auth import (
    verify_password, get_password_hash, create_access_token,
    decode_token, verify_token, refresh_access_token, create_refresh_token,
    get_current_user_id,
)


class TestPasswordHashing:
    def test_password_hashing(self):
        """Test password hashing and verification"""
        password = "test_password_123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert verify_password(password, hashed)
        assert not verify_password("wrong_password", hashed)


class TestJWTTokens:
    def test_create_access_token(self):
        """Test access token creation"""
        token = create_access_token("42")

        assert isinstance(token, str)
        assert decode_token(token) == "42"

    def test_create_refresh_token(self):
        """Test refresh token carries its type"""
        token = create_refresh_token("42")

        payload = verify_token(token, "refresh")
        assert payload is not None
        assert payload["sub"] == "42"
        assert payload["type"] == "refresh"

    def test_token_expiration(self):
        """Expired access tokens are rejected"""
        token = create_access_token("42", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_invalid_token(self):
        assert decode_token("invalid.token.here") is None

    def test_refresh_token_flow(self):
        """A refresh token yields a working access token"""
        new_access_token = refresh_access_token(create_refresh_token("42"))
        assert new_access_token is not None
        assert decode_token(new_access_token) == "42"

    def test_wrong_token_type(self):
        """Access tokens cannot be used as refresh tokens and vice versa"""
        assert verify_token(create_access_token("42"), "refresh") is None
        assert decode_token(create_refresh_token("42")) is None


class TestCurrentUser:
    def test_valid_bearer_token(self):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=create_access_token("7"))
        assert get_current_user_id(credentials) == 7

    def test_missing_credentials(self):
        with pytest.raises(HTTPException) as exc:
            get_current_user_id(None)
        assert exc.value.status_code == 401

    def test_bad_token(self):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="nope")
        with pytest.raises(HTTPException) as exc:
            get_current_user_id(credentials)
        assert exc.value.status_code == 401
