"""
Authentication helpers for verifying access tokens and resolving the current User.

Tokens are issued by the Glbiashara auth service; this service only
verifies them. The `sub` claim carries the numeric user id.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from glbiashara.core.config import settings
from glbiashara.database import get_db
from glbiashara.models import User

logger = logging.getLogger(__name__)


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(request: Request) -> str:
    """
    Extract 'Bearer <token>' from Authorization header.
    """
    auth = request.headers.get("Authorization")
    if not auth:
        raise _unauthorized("Missing Authorization header")

    parts = auth.split()
    if len(parts) != 2:
        raise _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")

    scheme, token = parts
    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme. Expected 'Bearer'")

    return token


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify an access token, raising 401 when it is not valid."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized("Token validation failed")


def _user_id_from_claims(payload: Dict[str, Any]) -> int:
    subject = payload.get("sub")
    if subject is None:
        raise _unauthorized("Token missing subject (sub)")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise _unauthorized("Token subject is not a user id")


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency: returns the current authenticated User (SQLAlchemy object).

    - Reads Authorization: Bearer <token>
    - Verifies the JWT signature and expiry
    - Loads the user named by `sub`
    """
    token = _extract_bearer_token(request)
    payload = decode_access_token(token)
    user_id = _user_id_from_claims(payload)

    user: Optional[User] = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.warning(
            "Token for unknown user: user_id=%s endpoint=%s %s",
            user_id,
            request.method,
            request.url.path,
        )
        raise _unauthorized("User not found")
    return user
