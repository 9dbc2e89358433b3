"""
Storefront API — Auth API routes
"""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import InvalidCredentials, InvalidToken
from storefront.core.security import create_access_token, verify_password
from storefront.db.database import get_db
from storefront.middleware.auth import current_user
from storefront.models.user import User
from storefront.schemas.auth import LoginRequest, LoginResponse, TokenIdentity, UserOut
from storefront.schemas.common import OPERATION_SUCCESS, ApiResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(payload: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    """Validate admin credentials (username or e-mail) and issue a JWT."""
    settings = request.app.state.settings
    result = await db.execute(
        select(User).where(or_(User.username == payload.username, User.email == payload.username))
    )
    user: User | None = result.scalar_one_or_none()

    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login for %r", payload.username)
        raise InvalidCredentials("Invalid username or password", message="Login failed")

    token = create_access_token(
        {"sub": str(user.id), "username": user.username, "email": user.email},
        settings,
    )
    logger.info("User %s logged in", user.username)
    return ApiResponse[LoginResponse](
        message="Login successful",
        data=LoginResponse(
            token=token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserOut.model_validate(user),
        ),
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout():
    """Tokens are stateless; the client drops its copy."""
    return ApiResponse[None](message="Logout successful")


@router.get("/me", response_model=ApiResponse[TokenIdentity])
async def me(claims: dict = Depends(current_user)):
    try:
        identity = TokenIdentity(id=int(claims["sub"]), username=claims["username"], email=claims["email"])
    except (KeyError, ValueError):
        raise InvalidToken("Token is missing identity claims")
    return ApiResponse[TokenIdentity](message=OPERATION_SUCCESS, data=identity)
