"""
User store.

Besides the record itself, committing a user keeps two derived views in
step: the realtime token minted by the push gateway (which needs the user's
key) and the search index document (registered users only), which is
written once the surrounding transaction commits.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from clients.base import SearchHit, SearchIndex
from modules.notifications.interfaces import INotifier
from shared.datastore import Datastore, after_commit
from shared.exceptions import ExternalServiceError
from shared.keys import InvalidKeyError, Key
from shared.log import alarm
from shared.repository import BaseRepository
from shared.validation import normalize_email, title_name

from .exceptions import DuplicateUserError, UserNotFoundError
from .models import GOOGLE, User, UserPartial

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 10


class UserRepository(BaseRepository[User]):
    """Repository for user records and the user search index."""

    entity_class = User

    def __init__(self, db: Datastore, notifier: INotifier, search: SearchIndex) -> None:
        super().__init__(db)
        self._notifier = notifier
        self._search = search

    # Lookups

    async def get(self, user_id: str) -> User:
        """
        Load a user by external id.

        Raises:
            UserNotFoundError: If the id is malformed or unknown
        """
        try:
            key = Key.decode(user_id, kind=User.kind)
        except InvalidKeyError:
            raise UserNotFoundError(user_id)
        user = await self._get(key)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_key(self, key: Key, transactional: bool = False) -> Optional[User]:
        return await self._get(key, transactional=transactional)

    async def get_multi(self, keys: list[Key]) -> list[Optional[User]]:
        return await self._get_multi(keys)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Match the primary email first, then any verified email."""
        email = normalize_email(email)
        user = await self._get_by_field("email", email)
        if user is None:
            user = await self._get_by_field("emails", email, contains=True)
        return user

    async def get_by_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        return await self._get_by_field("token", token)

    async def get_by_oauth_id(self, oauth_id: str, provider: str) -> Optional[User]:
        field = "oauth_google_id" if provider == GOOGLE else "oauth_facebook_id"
        return await self._get_by_field(field, oauth_id)

    async def get_by_contact(self, key: Key) -> list[User]:
        """Users that have ``key`` in their contact list."""
        return await self._query(self._new_query().where_contains("contacts", key))

    async def list_all(self) -> list[User]:
        return await self._query(self._new_query())

    async def _get_by_field(self, field: str, value: str, contains: bool = False) -> Optional[User]:
        query = self._new_query()
        if contains:
            query.where_contains(field, value)
        else:
            query.where(field, value)
        users = await self._query(query.page(0, 2))

        if len(users) > 1:
            raise DuplicateUserError(field, value).with_op(
                f"UserRepository.get_by_field(field={field!r})"
            )
        if not users:
            return None

        user = users[0]
        if not user.realtime_token:
            user.realtime_token = self._notifier.generate_token(user.id)
        return user

    # Writes

    def _prepare(self, user: User) -> None:
        now = datetime.now(timezone.utc)
        if user.created_at is None:
            user.created_at = now
        user.updated_at = now
        if user.first_name and user.last_name:
            user.first_name = title_name(user.first_name)
            user.last_name = title_name(user.last_name)
        user.derive_properties()

    async def commit(self, user: User) -> User:
        """Validate, persist and index a user."""
        self._prepare(user)
        if user.key is None:
            user.set_key(await self._db.allocate_key(User.kind))
        if not user.realtime_token:
            user.realtime_token = self._notifier.generate_token(user.id)
        await self._save(user)
        await after_commit(lambda: self.index(user))
        return user

    async def commit_multi(self, users: list[User]) -> list[User]:
        for user in users:
            self._prepare(user)
            if user.key is None:
                user.set_key(await self._db.allocate_key(User.kind))
            if not user.realtime_token:
                user.realtime_token = self._notifier.generate_token(user.id)
        await self._save_multi(users)
        for user in users:
            await after_commit(lambda indexed=user: self.index(indexed))
        return users

    async def delete(self, user: User) -> None:
        """Drop the user from the search index, then delete it."""
        if user.is_registered:
            try:
                await self._search.remove(user.id)
            except ExternalServiceError as e:
                alarm(e.with_op(f"UserRepository.delete({user.id})"))
        await self._delete(user)

    # Search

    async def index(self, user: User) -> None:
        """Upsert the user's search document. Only registered users are searchable."""
        if not user.is_registered:
            return
        partial = UserPartial.from_user(user)
        try:
            await self._search.upsert(
                SearchHit(
                    id=partial.id,
                    first_name=partial.first_name,
                    last_name=partial.last_name,
                    full_name=partial.full_name,
                    avatar=partial.avatar,
                )
            )
        except ExternalServiceError as e:
            alarm(e.with_op(f"UserRepository.index({user.id})"))

    async def search(self, query: str) -> list[UserPartial]:
        hits = await self._search.search(query, limit=SEARCH_PAGE_SIZE)
        return [
            UserPartial(
                id=hit.id,
                first_name=hit.first_name,
                last_name=hit.last_name,
                full_name=hit.full_name,
                avatar=hit.avatar,
            )
            for hit in hits
        ]
