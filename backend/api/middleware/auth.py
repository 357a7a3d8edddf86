"""
Bearer token authentication.

Clients authenticate with ``Authorization: Bearer <token>`` where the token
is the user's opaque 32 character token.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies import get_user_service
from modules.users.exceptions import InvalidTokenError
from modules.users.interfaces import IUserService
from modules.users.models import User

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: IUserService = Depends(get_user_service),
) -> User:
    """
    Dependency that requires authentication.

    Raises:
        InvalidTokenError: If the header is missing or the token is unknown
    """
    if credentials is None:
        raise InvalidTokenError("Missing authorization header")

    user = await users.get_user_by_token(credentials.credentials)
    if user is None:
        raise InvalidTokenError()
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    users: IUserService = Depends(get_user_service),
) -> Optional[User]:
    """
    Dependency that resolves the caller if a valid token was sent.

    Used by OAuth login, which merges an incomplete caller into the
    provider account.
    """
    if credentials is None:
        return None
    return await users.get_user_by_token(credentials.credentials)


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_user)
OptionalAuth = Depends(get_optional_user)
