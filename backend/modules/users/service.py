"""
User identity service.

Sign-up, password and OAuth login, magic link flows (reset, verify, login,
unsubscribe), profile and email management, and the get-or-create path
used whenever someone is invited by email address.

Users created as a side effect of an invitation are "incomplete": they have
a token and a primary email but no password and no OAuth link. They become
registered by setting a password, verifying their email or logging in with
a provider. Every new user gets a welcome job queued.
"""

import logging
from typing import Optional

from clients.base import BlobStore, OAuthClient
from clients.storage import decode_image
from shared.datastore import Datastore, after_commit, transactional
from shared.exceptions import ConvoError, ExternalServiceError
from shared.keys import InvalidKeyError, Key
from shared.log import alarm
from shared.models import UserInput
from shared.tokens import random_token
from shared.validation import is_email, normalize_email
from modules.email_queue.interfaces import IEmailQueue
from modules.email_queue.models import EmailAction, EmailPayload, EmailType
from modules.magic.interfaces import IMagicLinkService
from modules.magic.service import format_bool
from modules.mail.exceptions import MailDeliveryError
from modules.mail.service import MailService
from modules.merge.interfaces import IMergeService

from .interfaces import IUserService
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
from .passwords import hash_password, verify_password
from .repository import UserRepository
from .exceptions import (
    AccountLockedError,
    AlreadyRegisteredError,
    EmptySearchError,
    InvalidCredentialsError,
    InvalidUsersError,
    LinkUserNotFoundError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


def new_incomplete_user(email: str) -> User:
    """A user known only by an email address someone invited."""
    return User(email=email, first_name=email.split("@")[0], token=random_token())


class UserService(IUserService):
    """Identity operations over the user store."""

    def __init__(
        self,
        repository: UserRepository,
        mail: MailService,
        queue: IEmailQueue,
        magic: IMagicLinkService,
        oauth: OAuthClient,
        blobs: BlobStore,
        merge: IMergeService,
    ):
        self._repo = repository
        self._mail = mail
        self._queue = queue
        self._magic = magic
        self._oauth = oauth
        self._blobs = blobs
        self._merge = merge

    @property
    def datastore(self) -> Datastore:
        return self._repo.datastore

    # Lookups

    async def get_user(self, user_id: str) -> User:
        return await self._repo.get(user_id)

    async def get_user_by_token(self, token: str) -> Optional[User]:
        return await self._repo.get_by_token(token)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._repo.get_by_email(email)

    async def get_users(self, keys: list[Key]) -> list[User]:
        return [user for user in await self._repo.get_multi(keys) if user is not None]

    async def get_partials(self, keys: list[Key]) -> dict[Key, UserPartial]:
        return {user.key: UserPartial.from_user(user) for user in await self.get_users(keys)}

    async def commit(self, user: User) -> User:
        return await self._repo.commit(user)

    # Side effects

    async def _enqueue_welcome(self, users: list[User]) -> None:
        payload = EmailPayload(
            ids=[user.id for user in users],
            type=EmailType.USER,
            action=EmailAction.SEND_WELCOME,
        )

        async def put() -> None:
            try:
                await self._queue.put_email(payload)
            except ConvoError as e:
                alarm(e.with_op("UserService.enqueue_welcome"))

        await after_commit(put)

    async def _copy_avatar(self, user: User, url: str) -> None:
        if not url:
            return
        try:
            user.avatar = await self._blobs.put_avatar_from_url(url)
        except ExternalServiceError as e:
            alarm(e.with_op(f"UserService.copy_avatar({user.id})"))

    async def _send_verify_email(self, user: User, email: str, op: str) -> None:
        async def send() -> None:
            try:
                await self._mail.send_verify_email(user, email)
            except MailDeliveryError as e:
                alarm(e.with_op(op))

        await after_commit(send)

    async def _send_password_reset(self, user: User, op: str) -> None:
        async def send() -> None:
            try:
                await self._mail.send_password_reset(user)
            except MailDeliveryError as e:
                alarm(e.with_op(op))

        await after_commit(send)

    # Sign up and log in

    @transactional
    async def create_user(self, request: CreateUserRequest) -> tuple[User, bool]:
        user = await self._repo.get_by_email(request.email)
        if user is not None:
            if user.is_registered:
                raise AlreadyRegisteredError(request.email)
            # Someone was invited with this email. Make whoever signs up
            # prove they own it before the account is theirs.
            user.first_name = request.first_name
            user.last_name = request.last_name
            user.is_locked = True
            await self._repo.commit(user)
            await self._send_password_reset(user, f"UserService.create_user({user.id})")
            logger.info("Locked incomplete user %s pending verification", user.id)
            return user, False

        user = User(
            email=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            password_digest=hash_password(request.password),
            token=random_token(),
        )
        await self._repo.commit(user)
        await self._send_verify_email(user, user.email, f"UserService.create_user({user.id})")
        await self._enqueue_welcome([user])
        logger.info("Created user %s", user.id)
        return user, True

    async def authenticate(self, request: AuthenticateRequest) -> User:
        user = await self._repo.get_by_email(request.email)
        if user is None:
            raise InvalidCredentialsError(f"No user with email {request.email}")
        if not verify_password(user.password_digest, request.password):
            raise InvalidCredentialsError(f"Wrong password for {user.id}")
        if user.is_locked:
            await self._send_verify_email(user, user.email, f"UserService.authenticate({user.id})")
            raise AccountLockedError(user.email)
        return user

    @transactional
    async def oauth(self, request: OAuthRequest, token_user: Optional[User] = None) -> User:
        identity = await self._oauth.verify(request.provider, request.token)
        mergeable = token_user if token_user is not None and not token_user.is_registered else None

        user = await self._repo.get_by_oauth_id(identity.id, identity.provider)
        if user is not None:
            return await self._absorb(user, mergeable)

        email = normalize_email(identity.email)
        user = await self._repo.get_by_email(email)
        if user is None and mergeable is not None:
            user = mergeable
            mergeable = None

        if user is not None:
            user.set_oauth_id(identity.provider, identity.id)
            if not user.first_name or not user.last_name:
                user.first_name = identity.first_name
                user.last_name = identity.last_name
            if not user.avatar:
                await self._copy_avatar(user, identity.temp_avatar)
            user.add_email(email)
            user.derive_properties()
            await self._repo.commit(user)
            logger.info("Linked %s account to user %s", identity.provider, user.id)
            return await self._absorb(user, mergeable)

        user = User(
            email=email,
            emails=[email],
            first_name=identity.first_name,
            last_name=identity.last_name,
            token=random_token(),
        )
        user.set_oauth_id(identity.provider, identity.id)
        await self._copy_avatar(user, identity.temp_avatar)
        await self._repo.commit(user)
        await self._enqueue_welcome([user])
        logger.info("Created %s user %s", identity.provider, user.id)
        return user

    async def _absorb(self, user: User, other: Optional[User]) -> User:
        """Merge ``other`` into ``user`` unless they are the same account."""
        if other is None or user.has_key(other.key):
            return user
        return await self._merge.merge(user, other)

    # Magic links

    async def _link_user(self, user_id: str, status_code: int = 401) -> User:
        try:
            return await self._repo.get(user_id)
        except UserNotFoundError:
            raise LinkUserNotFoundError(user_id, status_code=status_code)

    def _check_link(self, request: MagicRequest, salt: str) -> None:
        self._magic.verify(request.user_id, request.timestamp, salt, request.signature)
        self._magic.check_fresh(request.timestamp)

    @transactional
    async def update_password(self, request: UpdatePasswordRequest) -> User:
        user = await self._link_user(request.user_id, status_code=400)
        self._check_link(request, user.password_digest)

        user.password_digest = hash_password(request.password)
        user.is_locked = False
        user.add_email(user.email)
        await self._repo.commit(user)
        return user

    @transactional
    async def verify_email(self, request: VerifyEmailRequest) -> User:
        user = await self._link_user(request.user_id, status_code=400)
        email = request.email
        self._check_link(request, email + format_bool(user.has_email(email)))

        holder = await self._repo.get_by_email(email)
        if holder is not None and not holder.has_key(user.key):
            user = await self._merge.merge(user, holder)

        user.add_email(email)
        if user.email == email:
            user.is_locked = False
        await self._repo.commit(user)
        logger.info("User %s verified %s", user.id, email)
        return user

    async def forgot_password(self, email: str) -> None:
        user = await self._repo.get_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return
        await self._send_password_reset(user, f"UserService.forgot_password({user.id})")

    async def magic_login(self, request: MagicRequest) -> User:
        user = await self._link_user(request.user_id)
        self._check_link(request, user.token)
        return user

    @transactional
    async def unsubscribe(self, request: MagicRequest) -> User:
        user = await self._link_user(request.user_id)
        self._check_link(request, user.token)

        user.send_digest = False
        user.send_threads = False
        user.send_events = False
        await self._repo.commit(user)
        return user

    # Profile

    @transactional
    async def update_user(self, user: User, request: UpdateUserRequest) -> User:
        if request.first_name:
            user.first_name = request.first_name
        if request.last_name:
            user.last_name = request.last_name
        if request.send_digest is not None:
            user.send_digest = request.send_digest
        if request.send_threads is not None:
            user.send_threads = request.send_threads
        if request.send_events is not None:
            user.send_events = request.send_events

        await self._repo.commit(user)

        if request.password:
            await self._send_password_reset(user, f"UserService.update_user({user.id})")
        return user

    async def resend_verification(self, user: User) -> None:
        await self._mail.send_verify_email(user, user.email)

    async def search(self, query: str) -> list[UserPartial]:
        query = query.strip()
        if not query:
            raise EmptySearchError()
        return await self._repo.search(query)

    @transactional
    async def update_avatar(self, user: User, request: AvatarRequest) -> User:
        # Crop parameters are accepted for client compatibility; the image
        # is stored as uploaded.
        data = decode_image(request.blob)
        user.avatar = await self._blobs.put_avatar(data, old_url=user.avatar)
        await self._repo.commit(user)
        return user

    # Emails

    async def add_email(self, user: User, email: str) -> None:
        email = normalize_email(email)
        holder = await self._repo.get_by_email(email)
        if holder is not None and holder.is_registered:
            await self._mail.send_merge_accounts(user, email)
        else:
            await self._mail.send_verify_email(user, email)

    @transactional
    async def remove_email(self, user: User, email: str) -> User:
        user.remove_email(email)
        return await self._repo.commit(user)

    @transactional
    async def make_email_primary(self, user: User, email: str) -> User:
        user.make_email_primary(email)
        return await self._repo.commit(user)

    # Get or create

    @transactional
    async def get_or_create_by_email(self, email: str) -> User:
        email = normalize_email(email)
        user = await self._repo.get_by_email(email)
        if user is not None:
            return user

        user = new_incomplete_user(email)
        await self._repo.commit(user)
        await self._enqueue_welcome([user])
        logger.info("Created incomplete user %s", user.id)
        return user

    @transactional
    async def get_or_create_users(self, inputs: list[UserInput]) -> list[User]:
        ids: list[str] = []
        emails: list[str] = []
        for item in inputs:
            if item.id:
                if item.id not in ids:
                    ids.append(item.id)
            elif item.email:
                if not is_email(item.email):
                    raise InvalidUsersError(f'"{item.email}" is not a valid email', field="user")
                email = item.email.strip().lower()
                if email not in emails:
                    emails.append(email)
            else:
                raise InvalidUsersError()

        try:
            keys = [Key.decode(user_id, kind=User.kind) for user_id in ids]
        except InvalidKeyError:
            raise InvalidUsersError()

        found = await self._repo.get_multi(keys)
        if any(user is None for user in found):
            raise InvalidUsersError()
        users: list[User] = list(found)
        seen = {user.key for user in users}

        created: list[User] = []
        for email in emails:
            user = await self._repo.get_by_email(email)
            if user is None:
                user = new_incomplete_user(email)
                created.append(user)
            elif user.key in seen:
                continue
            else:
                seen.add(user.key)
            users.append(user)

        if created:
            await self._repo.commit_multi(created)
            await self._enqueue_welcome(created)
            logger.info("Created %d incomplete users", len(created))
        return users
