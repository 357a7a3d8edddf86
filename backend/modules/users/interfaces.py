"""
Users module interface.

The API layer and the thread, event, contact and task modules depend on
IUserService for every identity operation.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.keys import Key
from shared.models import UserInput

from .models import (
    AuthenticateRequest,
    AvatarRequest,
    CreateUserRequest,
    MagicRequest,
    OAuthRequest,
    UpdatePasswordRequest,
    UpdateUserRequest,
    User,
    UserPartial,
    VerifyEmailRequest,
)


@runtime_checkable
class IUserService(Protocol):
    """
    Interface for user identity operations.
    """

    async def get_user(self, user_id: str) -> User:
        """
        Raises:
            UserNotFoundError: If the user does not exist
        """
        ...

    async def get_user_by_token(self, token: str) -> Optional[User]:
        """Resolve a bearer token. Returns None for unknown tokens."""
        ...

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Match a primary or verified email. Returns None when nobody has it."""
        ...

    async def get_users(self, keys: list[Key]) -> list[User]:
        """Load users by key, skipping keys that no longer exist."""
        ...

    async def get_partials(self, keys: list[Key]) -> dict[Key, UserPartial]:
        """Public views of the given users, keyed by user key."""
        ...

    async def commit(self, user: User) -> User:
        ...

    async def create_user(self, request: CreateUserRequest) -> tuple[User, bool]:
        """
        Sign up with a password.

        If an account that never finished signing up already holds the
        email, it is locked and sent a password reset link instead.

        Returns:
            The user and whether it was created

        Raises:
            AlreadyRegisteredError: If a registered user holds the email
        """
        ...

    async def authenticate(self, request: AuthenticateRequest) -> User:
        """
        Raises:
            InvalidCredentialsError: If the email or password is wrong
            AccountLockedError: If the account still has to verify its email
        """
        ...

    async def oauth(self, request: OAuthRequest, token_user: Optional[User] = None) -> User:
        """
        Log in, link or sign up with an OAuth provider.

        Args:
            request: Provider name and provider token
            token_user: User of the bearer token sent along, if any. An
                account that never finished signing up is merged into the
                OAuth account.
        """
        ...

    async def update_password(self, request: UpdatePasswordRequest) -> User:
        """
        Set a password from a reset link. Verifies the primary email.

        Raises:
            MagicLinkError: If the link is invalid or stale
        """
        ...

    async def verify_email(self, request: VerifyEmailRequest) -> User:
        """
        Add an email from a verification link, merging its previous holder.

        Raises:
            MagicLinkError: If the link is invalid or stale
        """
        ...

    async def forgot_password(self, email: str) -> None:
        """Send a reset link if a user holds ``email``. Never fails for unknown emails."""
        ...

    async def magic_login(self, request: MagicRequest) -> User:
        ...

    async def unsubscribe(self, request: MagicRequest) -> User:
        """Turn off every email preference from an unsubscribe link."""
        ...

    async def update_user(self, user: User, request: UpdateUserRequest) -> User:
        ...

    async def resend_verification(self, user: User) -> None:
        ...

    async def search(self, query: str) -> list[UserPartial]:
        """
        Raises:
            EmptySearchError: If ``query`` is blank
        """
        ...

    async def update_avatar(self, user: User, request: AvatarRequest) -> User:
        ...

    async def add_email(self, user: User, email: str) -> None:
        """Send a verification (or account merge) link for a new email."""
        ...

    async def remove_email(self, user: User, email: str) -> User:
        ...

    async def make_email_primary(self, user: User, email: str) -> User:
        ...

    async def get_or_create_by_email(self, email: str) -> User:
        """Find the holder of ``email`` or create an incomplete user for it."""
        ...

    async def get_or_create_users(self, inputs: list[UserInput]) -> list[User]:
        """
        Resolve a list of id or email references, creating users as needed.

        Raises:
            InvalidUsersError: If an id is unknown or an email is malformed
        """
        ...
