"""
Drama Quotes Backend — Authentication Route Handlers
====================================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
How:   Thin handlers: unpack the body, call UserService, return its result.
       Failures are raised as application exceptions and rendered by the
       global handlers (400 / 401 / 409 / 500).
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dramaquotes.database import get_db_session
from dramaquotes.dependencies import get_current_identity, get_user_service
from dramaquotes.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenIdentity,
)
from dramaquotes.schemas.common import ErrorResponse
from dramaquotes.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing field or password policy violated", "model": ErrorResponse},
        409: {"description": "Username or email already registered", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> AuthResponse:
    """Creates the user and returns it with a session token, so no separate login is needed."""
    return await users.register(
        db=db,
        username=body.username,
        email=body.email,
        password=body.password.get_secret_value(),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"description": "Invalid username or password", "model": ErrorResponse},
    },
    summary="Log in with username and password",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    users: UserService = Depends(get_user_service),
) -> AuthResponse:
    return await users.login(
        db=db,
        username=body.username,
        password=body.password.get_secret_value(),
    )


@router.get(
    "/me",
    response_model=TokenIdentity,
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
    summary="Identity carried by the presented token",
)
async def me(identity: TokenIdentity = Depends(get_current_identity)) -> TokenIdentity:
    return identity
