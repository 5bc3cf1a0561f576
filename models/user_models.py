"""
Pydantic models for authentication requests and user responses.
"""

from pydantic import EmailStr, Field, field_validator
from datetime import datetime
from uuid import UUID
import re

from models.common_models import CamelModel

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


class UserSignup(CamelModel):
    """Body of POST /auth/signup."""
    username: str = Field(..., description="3-30 letters, numbers or underscores")
    email: EmailStr
    password: str = Field(..., description="At least 6 characters")

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        if not 3 <= len(value) <= 30:
            raise ValueError("Username must be between 3 and 30 characters")
        if not USERNAME_PATTERN.match(value):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password cannot exceed 72 bytes")
        return value


class UserLogin(CamelModel):
    """Body of POST /auth/login."""
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class User(CamelModel):
    """Public projection of a user record. Never carries the password hash."""
    id: UUID
    username: str
    email: str
    created_at: datetime


class UserData(CamelModel):
    user: User


class AuthData(CamelModel):
    user: User
    token: str
