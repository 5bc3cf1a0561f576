"""
Credential store for user accounts.
Uniqueness of username and email is enforced by the table constraints, not by pre-checks.
"""

from typing import Optional
from uuid import UUID, uuid4
import asyncio
import logging

import asyncpg

from config.db_connection import DatabaseManager
from models.user_models import User
from utils.errors import ConflictError
from utils.security import hash_password, check_password

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, username, email, created_at"

CONFLICT_MESSAGES = {
    "users_username_key": "Username already exists",
    "users_email_key": "Email already registered",
}


class UserStore:
    """Reads and writes the users table."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def create_user(self, username: str, email: str, raw_password: str) -> User:
        """
        Create a user with a bcrypt hash of the password.

        Raises:
            ConflictError: If the username or the email is already taken
        """
        hashed_password = await asyncio.to_thread(hash_password, raw_password)
        try:
            row = await self.db.fetch_one(
                f"""
                INSERT INTO users (id, username, email, password_hash)
                VALUES ($1, $2, $3, $4)
                RETURNING {USER_COLUMNS}
                """,
                uuid4(),
                username,
                email,
                hashed_password,
            )
        except asyncpg.UniqueViolationError as e:
            constraint = getattr(e, "constraint_name", None)
            logger.info(f"Signup rejected, duplicate identity ({constraint})")
            raise ConflictError(CONFLICT_MESSAGES.get(constraint, ConflictError.default_message))
        return User(**row)

    async def find_by_email(self, email: str) -> Optional[User]:
        row = await self.db.fetch_one(
            f"SELECT {USER_COLUMNS} FROM users WHERE email = $1",
            email.lower(),
        )
        return User(**row) if row else None

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        row = await self.db.fetch_one(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
            user_id,
        )
        return User(**row) if row else None

    async def verify_password(self, user: User, raw_password: str) -> bool:
        """Compare a password with the stored hash. Never raises on mismatch."""
        hashed_password = await self.db.fetch_val(
            "SELECT password_hash FROM users WHERE id = $1",
            user.id,
        )
        return await asyncio.to_thread(check_password, raw_password, hashed_password)
