"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from storefront.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from storefront.schemas.auth import UserContext


def parse_bearer_token(authorization: str) -> str:
    """Extract the token from a "Bearer <token>" header value.

    Raises:
        HTTPException: 401 if the header is not in Bearer format.
    """
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return parts[1]


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """Extract and validate the current user from the Authorization header.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        UserContext: The authenticated user's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = parse_bearer_token(authorization)

    try:
        payload = decode_jwt(token)
        return payload.to_user_context()

    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_buyer(user: Annotated[UserContext, Depends(get_current_user)]) -> UserContext:
    """Require an authenticated user that carries an email.

    Payments and orders are keyed by buyer email, so a token without one
    cannot check out.
    """
    if not user.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User email not found. Cannot process checkout.",
        )
    return user


async def get_admin_user(user: Annotated[UserContext, Depends(get_current_user)]) -> UserContext:
    """Require an authenticated user with the admin role."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


# Type aliases for cleaner dependency injection
CurrentBuyer = Annotated[UserContext, Depends(get_current_buyer)]
AdminUser = Annotated[UserContext, Depends(get_admin_user)]
