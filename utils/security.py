"""
Password hashing and bearer token utilities.
Passwords are hashed with bcrypt, tokens are HS256 JWTs signed with a process-wide secret.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
import jwt

from utils.errors import InvalidTokenError

TOKEN_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def check_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.
    Returns False for a mismatch, an unusable hash or an over-long password.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(self, secret: str, expires_in: int = 7 * 24 * 60 * 60):
        if not secret:
            raise ValueError("Token signing secret is required")
        self._secret = secret
        self.expires_in = expires_in

    def issue(self, user_id, now: Optional[datetime] = None) -> str:
        """
        Create a token for the user.

        Args:
            user_id: Identifier embedded as the token subject
            now: Issue time, defaults to the current UTC time

        Returns:
            Encoded JWT
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self.expires_in),
        }
        return jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> str:
        """
        Check a token and return the user id it was issued for.

        Raises:
            InvalidTokenError: Bad signature, malformed payload or expired token
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("Token subject is missing")
        return subject
