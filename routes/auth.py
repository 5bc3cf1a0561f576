"""
Authentication routes.
Handles signup, login and the current user profile. Tokens are stateless JWTs.
"""

from fastapi import APIRouter, Depends, status
import logging

from models.common_models import ApiResponse
from models.user_models import AuthData, UserData, UserLogin, UserSignup
from utils.auth import AuthContext, get_current_user
from utils.dependencies import get_token_service, get_user_store
from utils.errors import AuthError
from utils.security import TokenService
from utils.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=ApiResponse[AuthData], status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: UserSignup,
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Register a new user.

    - **username**: Unique username (3-30 letters, numbers or underscores)
    - **email**: Unique, valid email address
    - **password**: Password (minimum 6 characters)
    """
    user = await users.create_user(user_data.username, user_data.email, user_data.password)
    logger.info(f"Registered user {user.id}")

    return ApiResponse(
        message="User registered successfully",
        data=AuthData(user=user, token=tokens.issue(user.id)),
    )


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(
    credentials: UserLogin,
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Login with email and password.

    - **email**: Registered email address
    - **password**: User password
    """
    user = await users.find_by_email(credentials.email)
    if user is None:
        logger.info("Login failed for an unknown email")
        raise AuthError("Invalid credentials")
    if not await users.verify_password(user, credentials.password):
        logger.info(f"Login failed for user {user.id}: wrong password")
        raise AuthError("Invalid credentials")

    logger.info(f"User {user.id} logged in")

    return ApiResponse(
        message="Login successful",
        data=AuthData(user=user, token=tokens.issue(user.id)),
    )


@router.get("/me", response_model=ApiResponse[UserData])
async def get_me(auth: AuthContext = Depends(get_current_user)):
    """
    Get current authenticated user information.

    Requires Authorization header with Bearer token.
    """
    return ApiResponse(data=UserData(user=auth.user))
