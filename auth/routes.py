"""
Auth API routes: signup, login, profile.

Route prefix: /auth
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from auth.dependencies import get_current_user, get_settings, get_token_service, get_user_store
from auth.jwt import TokenService
from auth.password import decoy_hash, hash_password, verify_password
from config.settings import Settings
from database.models import User
from database.users import UserStore
from utils.errors import UnauthenticatedError
from utils.schemas import (
    ERROR_RESPONSES,
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    SignupRequest,
    UserOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"], responses=ERROR_RESPONSES)

# Same answer for unknown email and wrong password.
LOGIN_FAILED = "Invalid email or password"


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    req: SignupRequest,
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """Register a new user and return a token for them."""
    user = await users.create_user(
        email=req.email,
        name=req.name,
        password_hash=hash_password(req.password, rounds=settings.bcrypt_rounds),
    )
    logger.info("Registered user %s", user.user_id)
    return AuthResponse(user=UserOut.from_model(user), token=tokens.issue(str(user.user_id)))


@router.post("/login", response_model=AuthResponse)
async def login(
    req: LoginRequest,
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """Login with email + password."""
    user = await users.find_by_email(req.email)
    stored = user.password_hash if user is not None else decoy_hash(settings.bcrypt_rounds)

    if not verify_password(req.password, stored) or user is None:
        logger.info("Failed login attempt")
        raise UnauthenticatedError(LOGIN_FAILED)

    logger.info("Login: %s", user.user_id)
    return AuthResponse(user=UserOut.from_model(user), token=tokens.issue(str(user.user_id)))


@router.get("/profile", response_model=ProfileResponse)
async def profile(current_user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse(user=UserOut.from_model(current_user))
