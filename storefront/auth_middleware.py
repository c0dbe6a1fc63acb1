"""
JWT Authentication Middleware.

Verifies signed JWTs issued by the account service. Tokens carry the
numeric user id (`userId`) and a seller flag (`isSeller`).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Header, HTTPException, Request
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

# JWT Configuration
ALGORITHM = "HS256"


def _get_secret_key() -> str:
    """Lazy-load the secret key to support testing."""
    from storefront.config import get_settings
    return get_settings().SECRET_KEY


def _get_expire_minutes() -> int:
    from storefront.config import get_settings
    return get_settings().ACCESS_TOKEN_EXPIRE_MINUTES


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller."""
    user_id: int
    is_seller: bool = False


def create_access_token(user_id: int, is_seller: bool = False, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for a user.

    Login lives in the account service; this helper exists for tooling
    and tests that need a token the API will accept.
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=_get_expire_minutes()))
    to_encode = {
        "userId": user_id,
        "isSeller": is_seller,
        "exp": expire,
    }
    return jwt.encode(to_encode, _get_secret_key(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> CurrentUser:
    """Decode a token, raising JWTError or ValueError if it is unusable."""
    payload = jwt.decode(token, _get_secret_key(), algorithms=[ALGORITHM])
    user_id = payload.get("userId")
    if user_id is None:
        raise ValueError("Token has no userId claim")
    return CurrentUser(user_id=int(user_id), is_seller=bool(payload.get("isSeller", False)))


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> CurrentUser:
    """
    FastAPI dependency that extracts and validates the caller from a JWT.
    Supports both 'Authorization: Bearer' header and 'auth_token' cookie.
    """
    credentials_exception = HTTPException(
        status_code=401,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = None

    # 1. Try Authorization Header
    if authorization and authorization[:7].lower() == "bearer ":
        token = authorization[7:].strip()

    # 2. Try HttpOnly Cookie (Fallback)
    if not token:
        token = request.cookies.get("auth_token")

    if not token:
        raise credentials_exception

    try:
        user = decode_access_token(token)
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"🔑 Authenticated user: {user.user_id}")
    return user
