"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends, Header, Query

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.api.middleware.error_handler import AuthenticationError, AuthorizationError
from src.core.config import get_settings
from src.schemas.auth import UserContext
from src.schemas.common import Pagination
from src.services.option_registry import OptionRegistry, get_option_registry


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """Extract and validate the current user from the Authorization header.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        UserContext: The authenticated user's context.

    Raises:
        AuthenticationError: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise AuthenticationError("Authorization header required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid authorization header format. Expected: Bearer <token>")

    try:
        payload = decode_jwt(parts[1])
        return payload.to_user_context()

    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise AuthenticationError("Token has expired") from e
        raise AuthenticationError(e.message) from e


async def get_admin_user(
    user: Annotated[UserContext, Depends(get_current_user)],
) -> UserContext:
    """Require the configured admin role.

    Raises:
        AuthorizationError: 403 if the user is not an administrator.
    """
    if user.role != get_settings().admin_role:
        raise AuthorizationError("Administrator role required")
    return user


def get_registry() -> OptionRegistry:
    """Provide the shared option registry."""
    return get_option_registry()


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[UserContext, Depends(get_current_user)]
AdminUser = Annotated[UserContext, Depends(get_admin_user)]
Registry = Annotated[OptionRegistry, Depends(get_registry)]


def get_pagination(
    limit: Annotated[int | None, Query(ge=1, description="Maximum number of items to return")] = None,
    skip: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> Pagination:
    """Build pagination from query parameters, capped at the configured maximum."""
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    return Pagination(limit=limit, skip=skip)


PageParams = Annotated[Pagination, Depends(get_pagination)]
