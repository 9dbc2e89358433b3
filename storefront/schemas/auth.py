"""
Storefront API — Auth schemas
"""
from datetime import datetime

from pydantic import Field

from storefront.schemas.common import CamelModel


class LoginRequest(CamelModel):
    # Username or e-mail address
    username: str = Field(..., min_length=3, max_length=50, examples=["admin"])
    password: str = Field(..., min_length=6, max_length=128)


class UserOut(CamelModel):
    id: int
    username: str
    email: str
    is_active: bool
    created_at: datetime | None = None


class LoginResponse(CamelModel):
    token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: UserOut


class TokenIdentity(CamelModel):
    id: int
    username: str
    email: str
