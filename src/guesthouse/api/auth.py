"""Admin JWT verification.

Tokens are issued elsewhere (HS256, claims ``adminId``, ``email``, ``exp``);
this module only verifies them.

Provides:
- verify_token(): Validates JWT and returns the admin identity
- require_admin(): FastAPI dependency for admin-only routes
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import jwt
from fastapi import HTTPException, Request

from guesthouse.observability.logging import get_logger

logger = get_logger(__name__)

_ALGORITHMS = ["HS256"]


@dataclass
class AdminUser:
    """Authenticated admin context."""

    id: int
    email: str | None


def _get_jwt_secret() -> str:
    """Get admin JWT secret from environment.

    Raises:
        HTTPException: 500 if ADMIN_JWT_SECRET is not configured.
    """
    secret = os.environ.get("ADMIN_JWT_SECRET", "")
    if not secret:
        logger.error("ADMIN_JWT_SECRET not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    return secret


def verify_token(token: str) -> AdminUser:
    """Verify an admin JWT.

    Raises:
        HTTPException: 401 if token is invalid, expired or lacks adminId.
    """
    secret = _get_jwt_secret()

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=_ALGORITHMS,
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    admin_id = payload.get("adminId")
    if not isinstance(admin_id, int):
        raise HTTPException(status_code=401, detail="Invalid token")

    return AdminUser(id=admin_id, email=payload.get("email"))


def _extract_bearer_token(request: Request) -> str:
    """Extract Bearer token from Authorization header.

    Raises:
        HTTPException: 401 if header missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    return parts[1]


def require_admin(request: Request) -> AdminUser:
    """FastAPI dependency: authenticated admin or 401."""
    return verify_token(_extract_bearer_token(request))
