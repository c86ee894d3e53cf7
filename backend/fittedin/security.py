"""
FittedIn Backend — Credentials and Bearer Tokens
=================================================

What:  Password hashing (bcrypt), JWT issue/verify (PyJWT) and the FastAPI
       dependency that resolves the acting user from the Authorization header.
Who:   AuthService issues tokens; every authenticated router depends on
       `get_current_user_id`.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Header
from starlette.concurrency import run_in_threadpool

from fittedin.config import settings
from fittedin.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Passwords
# ══════════════════════════════════════════════════════════════════════════

# bcrypt only looks at the first 72 bytes and bcrypt>=5 raises beyond that
BCRYPT_MAX_PASSWORD_BYTES = 72


def password_fits_bcrypt(password: str) -> bool:
    return len(password.encode("utf-8")) <= BCRYPT_MAX_PASSWORD_BYTES


def _hash_password_sync(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password_sync(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


async def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt; the salt is embedded in the result.

    Runs in the threadpool: a cost-12 hash takes a few hundred milliseconds.

    Raises:
        ValidationError: password longer than 72 bytes in UTF-8
    """
    if not password_fits_bcrypt(password):
        raise ValidationError(
            f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes", field="password"
        )
    return await run_in_threadpool(_hash_password_sync, password)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash (in the threadpool)."""
    if not hashed_password.startswith(("$2a$", "$2b$", "$2y$")):
        logger.warning("Rejected login against a non-bcrypt password hash")
        return False
    if not password_fits_bcrypt(plain_password):
        return False
    return await run_in_threadpool(_verify_password_sync, plain_password, hashed_password)


# ══════════════════════════════════════════════════════════════════════════
# JWT
# ══════════════════════════════════════════════════════════════════════════

def create_access_token(user_id: uuid.UUID, ttl_seconds: Optional[int] = None) -> str:
    """
    Sign an access token for `user_id`.

    Claims: sub (user id), iat, exp, jti.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_expire_minutes * 60
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        AuthenticationError: expired, malformed or wrongly signed token
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected bearer token: %s", str(e))
        raise AuthenticationError("Invalid token")


# ══════════════════════════════════════════════════════════════════════════
# FastAPI Dependency
# ══════════════════════════════════════════════════════════════════════════

async def get_current_user_id(
    authorization: Optional[str] = Header(default=None),
) -> uuid.UUID:
    """
    Resolve the acting user's id from `Authorization: Bearer <token>`.

    The token is trusted as-is; handlers that need the User row load it
    through UserService, which raises NotFoundError for deleted accounts.
    """
    if not authorization:
        raise AuthenticationError("Authentication required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")

    claims = decode_access_token(token.strip())
    try:
        return uuid.UUID(claims["sub"])
    except (ValueError, TypeError):
        raise AuthenticationError("Invalid token")
