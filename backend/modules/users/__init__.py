"""
Users module.

Identity for Convo: password and OAuth accounts, incomplete accounts
created by invitation, verified email addresses, contacts and the user
search index.

Public API:
- IUserService: Interface for identity operations
- User, UserPartial, UserView: Entity and API views
"""

from .interfaces import IUserService
from .models import User, UserPartial, UserView, TagPair
from .exceptions import (
    UserNotFoundError,
    DuplicateUserError,
    InvalidTokenError,
    InvalidCredentialsError,
    AccountLockedError,
    AlreadyRegisteredError,
    EmailChangeError,
    ContactError,
    InvalidUsersError,
    LinkUserNotFoundError,
    EmptySearchError,
)

__all__ = [
    # Interface
    "IUserService",
    # Models
    "User",
    "UserPartial",
    "UserView",
    "TagPair",
    # Exceptions
    "UserNotFoundError",
    "DuplicateUserError",
    "InvalidTokenError",
    "InvalidCredentialsError",
    "AccountLockedError",
    "AlreadyRegisteredError",
    "EmailChangeError",
    "ContactError",
    "InvalidUsersError",
    "LinkUserNotFoundError",
    "EmptySearchError",
]
