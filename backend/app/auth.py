"""Authentication for the EZ Clear backend.

Sign-in is handled by the auth provider; this module only verifies the
bearer JWT it issues (``sub`` is the user id). The token may also arrive in
the auth cookie set by the web client.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings, get_settings

# Cookie name for httpOnly auth
AUTH_COOKIE_NAME = "ezclear_auth"

USER_TYPES = ("worker", "hirer")

# Make bearer optional to allow cookie fallback
security = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    settings: Settings,
    expires_delta: timedelta | None = None,
    user_type: str | None = None,
) -> str:
    """Create a JWT shaped like the auth provider's access tokens.

    Used by tests and local tooling; production tokens come from the provider.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode = {
        "sub": user_id,
        "exp": expire,
        "iat": now,
        "role": "authenticated",
    }
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    if user_type:
        to_encode["user_type"] = user_type
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthContext:
    """Authenticated caller.

    ``user_type`` reflects the role the user picked in the UI. It only
    drives presentation, never authorization.
    """

    def __init__(self, user_id: str, user_type: str | None = None, email: str | None = None):
        self.user_id = user_id
        self.user_type = user_type if user_type in USER_TYPES else None
        self.email = email


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext:
    """Get the caller from the Authorization header or the auth cookie."""
    token = credentials.credentials if credentials else request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated - provide Authorization header or auth cookie",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(token, settings)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    metadata = payload.get("user_metadata") or {}
    return AuthContext(
        user_id=user_id,
        user_type=payload.get("user_type") or metadata.get("user_type"),
        email=payload.get("email"),
    )


# Type alias for dependency injection
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
