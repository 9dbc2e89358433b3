"""
Storefront API — JWT Authentication Middleware
Validates the Bearer token on admin routes; returns 401 on failure.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.exceptions import InvalidToken
from storefront.core.security import decode_token
from storefront.schemas.common import error_body

# Path prefixes that DO require authentication; everything else is public
PROTECTED_PREFIXES = (
    "/api/admin",
    "/api/auth/me",
)


def _unauthorized(error: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content=error_body("Unauthorized access", error),
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Attaches decoded claims to request.state.user on protected paths.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        if not request.url.path.startswith(PROTECTED_PREFIXES):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return _unauthorized("Missing or invalid Authorization header. Expected: Bearer <token>")

        token = auth_header.split(" ", 1)[1]
        try:
            claims = decode_token(token, request.app.state.settings)
        except JWTError:
            return _unauthorized("Invalid or expired token")
        if claims.get("type") != "access":
            return _unauthorized("Invalid or expired token")

        request.state.user = claims
        return await call_next(request)


def current_user(request: Request) -> dict:
    """Dependency: claims of the authenticated caller."""
    claims = getattr(request.state, "user", None)
    if claims is None:
        raise InvalidToken()
    return claims
