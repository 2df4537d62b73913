"""Tests for admin JWT verification."""

import time

import pytest
from fastapi import HTTPException

from guesthouse.api.auth import AdminUser, verify_token

from tests.helpers import create_admin_token


class TestVerifyToken:
    def test_valid_token(self, admin_secret):
        token = create_admin_token(admin_id=3, email="owner@guesthouse.test")

        assert verify_token(token) == AdminUser(id=3, email="owner@guesthouse.test")

    def test_expired_token(self, admin_secret):
        token = create_admin_token(exp=int(time.time()) - 60)

        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token expired"

    def test_wrong_secret(self, admin_secret):
        token = create_admin_token(secret="some-other-secret-0123456789abcdef")

        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)

        assert exc_info.value.status_code == 401

    def test_garbage_token(self, admin_secret):
        with pytest.raises(HTTPException) as exc_info:
            verify_token("not.a.jwt")
        assert exc_info.value.status_code == 401

    def test_missing_admin_id(self, admin_secret):
        import jwt

        token = jwt.encode(
            {"email": "x@guesthouse.test", "exp": int(time.time()) + 60},
            admin_secret,
            algorithm="HS256",
        )

        with pytest.raises(HTTPException) as exc_info:
            verify_token(token)
        assert exc_info.value.status_code == 401

    def test_secret_not_configured(self, monkeypatch):
        monkeypatch.delenv("ADMIN_JWT_SECRET", raising=False)

        with pytest.raises(HTTPException) as exc_info:
            verify_token(create_admin_token())
        assert exc_info.value.status_code == 500
