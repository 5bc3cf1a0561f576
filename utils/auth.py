"""
Authentication utilities for FastAPI.
Provides the dependency that protects endpoints with a bearer token.
"""

from dataclasses import dataclass
from fastapi import Depends, Header
from typing import Optional
from uuid import UUID
import logging

from models.user_models import User
from utils.dependencies import get_token_service, get_user_store
from utils.errors import AuthError, InvalidTokenError
from utils.security import TokenService
from utils.user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller of a request."""
    user: User
    token: str


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of an "Authorization: Bearer <token>" header, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    users: UserStore = Depends(get_user_store),
) -> AuthContext:
    """
    Resolve the caller from the Authorization header.

    Raises:
        AuthError: If the token is missing, invalid or expired, or its user no longer exists
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthError("Not authorized, no token")

    try:
        subject = tokens.verify(token)
        user_id = UUID(subject)
    except (InvalidTokenError, ValueError) as e:
        logger.info(f"Rejected bearer token: {e}")
        raise AuthError("Not authorized, token failed")

    user = await users.find_by_id(user_id)
    if user is None:
        raise AuthError("Not authorized, user not found")

    return AuthContext(user=user, token=token)
