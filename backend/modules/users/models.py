"""
User entity, API views and request bodies.
"""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

from shared.entity import Entity
from shared.keys import Key
from shared.models import ApiModel
from shared.validation import Email, Trimmed

from .exceptions import ContactError, EmailChangeError

MAX_CONTACTS = 50

GOOGLE = "google"
FACEBOOK = "facebook"


class TagPair(BaseModel):
    name: str
    count: int = 0


class User(Entity):
    """
    A person with an account, complete or not.

    ``email`` is the primary address; ``emails`` holds every verified
    address. A user is verified when its primary address is verified and
    registered when, in addition, it can log in on its own.
    """

    kind: ClassVar[str] = "User"

    email: str = ""
    emails: list[str] = Field(default_factory=list)
    first_name: str = ""
    last_name: str = ""
    password_digest: str = ""
    oauth_google_id: str = ""
    oauth_facebook_id: str = ""
    avatar: str = ""
    token: str = ""
    realtime_token: str = ""
    is_locked: bool = False
    contacts: list[Key] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    send_digest: bool = True
    send_threads: bool = True
    send_events: bool = True
    tags: list[TagPair] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        """Full name, or the local part of the email when there is none."""
        return self.full_name or self.email.split("@")[0]

    @property
    def is_password_set(self) -> bool:
        return self.password_digest != ""

    @property
    def is_google_linked(self) -> bool:
        return self.oauth_google_id != ""

    @property
    def is_facebook_linked(self) -> bool:
        return self.oauth_facebook_id != ""

    @property
    def verified(self) -> bool:
        return self.email in self.emails

    @property
    def is_registered(self) -> bool:
        return self.verified and (
            self.is_password_set or self.is_google_linked or self.is_facebook_linked
        )

    def after_load(self) -> None:
        self.derive_properties()

    def derive_properties(self) -> None:
        """Keep the primary email verified whenever a verified one exists."""
        self.email = self.email.lower()
        self.emails = list(dict.fromkeys(e.lower() for e in self.emails))
        if not self.verified and self.emails:
            self.email = self.emails[0]

    # Emails

    def has_email(self, email: str) -> bool:
        return email.lower() in self.emails

    def add_email(self, email: str) -> None:
        """Add a verified email. Only verified addresses belong in ``emails``."""
        email = email.lower()
        if email not in self.emails:
            self.emails.append(email)

    def remove_email(self, email: str) -> None:
        email = email.lower()
        if email not in self.emails:
            return
        if email == self.email:
            raise EmailChangeError(email, "You cannot remove your primary email")
        self.emails.remove(email)

    def make_email_primary(self, email: str) -> None:
        if not self.has_email(email):
            raise EmailChangeError(email, "You cannot make an unverified email primary")
        self.email = email.lower()

    def set_oauth_id(self, provider: str, oauth_id: str) -> None:
        if provider == GOOGLE:
            self.oauth_google_id = oauth_id
        else:
            self.oauth_facebook_id = oauth_id

    # Contacts

    def has_contact(self, key: Key) -> bool:
        return key in self.contacts

    def add_contact(self, contact: "User") -> None:
        if self.has_contact(contact.key):
            raise ContactError("You already have this contact", contact.id)
        if self.has_key(contact.key):
            raise ContactError("You cannot add yourself as a contact", contact.id)
        if len(self.contacts) >= MAX_CONTACTS:
            raise ContactError("You can have a maximum of 50 contacts", contact.id)
        self.contacts.append(contact.key)

    def remove_contact(self, contact: "User") -> None:
        if not self.has_contact(contact.key):
            raise ContactError("You don't have this contact", contact.id)
        self.contacts.remove(contact.key)


class UserPartial(ApiModel):
    """Public view of a user."""

    id: str
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    avatar: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserPartial":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.display_name,
            avatar=user.avatar,
        )


class UserView(ApiModel):
    """The authenticated user's own view of their account."""

    id: str
    email: str
    emails: list[str]
    first_name: str
    last_name: str
    full_name: str
    token: str
    realtime_token: str
    is_password_set: bool
    is_google_linked: bool
    is_facebook_linked: bool
    verified: bool
    avatar: str
    send_digest: bool
    send_threads: bool
    send_events: bool
    tags: list[str]

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(
            id=user.id,
            email=user.email,
            emails=list(user.emails),
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            token=user.token,
            realtime_token=user.realtime_token,
            is_password_set=user.is_password_set,
            is_google_linked=user.is_google_linked,
            is_facebook_linked=user.is_facebook_linked,
            verified=user.verified,
            avatar=user.avatar,
            send_digest=user.send_digest,
            send_threads=user.send_threads,
            send_events=user.send_events,
            tags=[tag.name for tag in user.tags],
        )


class UserSearchResponse(ApiModel):
    users: list[UserPartial]


# Requests


class CreateUserRequest(ApiModel):
    email: Email
    first_name: Trimmed = Field(min_length=1)
    last_name: Trimmed = ""
    password: str = Field(min_length=8)


class AuthenticateRequest(ApiModel):
    email: Email
    password: str = Field(min_length=1)


class OAuthRequest(ApiModel):
    provider: str = Field(pattern="^(google|facebook)$")
    token: str = Field(min_length=1)


class MagicRequest(ApiModel):
    """Fields of a magic link, as posted back by the client."""

    signature: Trimmed = Field(min_length=1)
    timestamp: Trimmed = Field(min_length=1)
    user_id: Trimmed = Field(min_length=1)


class UpdatePasswordRequest(MagicRequest):
    password: str = Field(min_length=8)


class VerifyEmailRequest(MagicRequest):
    email: Email


class EmailRequest(ApiModel):
    email: Email


class UpdateUserRequest(ApiModel):
    first_name: Trimmed = ""
    last_name: Trimmed = ""
    password: bool = False
    send_digest: Optional[bool] = None
    send_threads: Optional[bool] = None
    send_events: Optional[bool] = None


class AvatarRequest(ApiModel):
    blob: str = Field(min_length=1)
    x: float = 0
    y: float = 0
    size: float = 0
