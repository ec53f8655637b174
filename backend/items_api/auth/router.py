from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db_session
from ..instrumentation import track_operation
from ..repositories import DuplicateUserError, UserRepository
from .dependencies import CurrentIdentity, get_password_hasher, get_token_service
from .errors import HashingError, SigningError
from .models import AuthResponse, Identity, LoginRequest, RegisterRequest, UserOut
from .passwords import PasswordHasher
from .tokens import TokenService

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Hasher = Annotated[PasswordHasher, Depends(get_password_hasher)]
Tokens = Annotated[TokenService, Depends(get_token_service)]


def _internal_error() -> HTTPException:
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


def _invalid_credentials() -> HTTPException:
    # Same response for unknown user and wrong password
    return HTTPException(
        status.HTTP_401_UNAUTHORIZED,
        detail="Invalid username or password",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _issue_token(tokens: TokenService, user_id: int, username: str) -> str:
    try:
        return tokens.issue(Identity(user_id=user_id, username=username))
    except SigningError as exc:
        LOGGER.exception(
            "Failed to generate JWT for user %s", user_id, extra={"user_id": user_id}
        )
        raise _internal_error() from exc


@router.post("/register", response_model=AuthResponse)
async def register(
    payload: RegisterRequest,
    db: DbSession,
    hasher: Hasher,
    tokens: Tokens,
) -> AuthResponse:
    """Create an account and return a token for it."""
    try:
        password_hash = await asyncio.to_thread(hasher.hash, payload.password)
    except HashingError as exc:
        LOGGER.exception("Failed to hash password")
        raise _internal_error() from exc

    repo = UserRepository(db)
    try:
        with track_operation("create_user"):
            user = await repo.create(payload.username, password_hash, payload.email)
            await db.commit()
    except DuplicateUserError as exc:
        raise HTTPException(
            status.HTTP_409_CONFLICT, detail="Username or email already registered"
        ) from exc

    token = _issue_token(tokens, user.id, user.username)
    return AuthResponse(
        token=token,
        user=UserOut.model_validate(user),
        message="User registered successfully",
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: DbSession,
    hasher: Hasher,
    tokens: Tokens,
) -> AuthResponse:
    """Exchange a username and password for a token."""
    repo = UserRepository(db)
    with track_operation("get_user"):
        user = await repo.get_by_username(payload.username)
    if user is None:
        await asyncio.to_thread(hasher.verify_missing, payload.password)
        raise _invalid_credentials()

    if not await asyncio.to_thread(hasher.verify, payload.password, user.password_hash):
        raise _invalid_credentials()

    token = _issue_token(tokens, user.id, user.username)
    return AuthResponse(
        token=token,
        user=UserOut.model_validate(user),
        message="Login successful",
    )


@router.get("/me")
async def auth_me(identity: CurrentIdentity) -> dict[str, object]:
    return {"user_id": identity.user_id, "username": identity.username}
