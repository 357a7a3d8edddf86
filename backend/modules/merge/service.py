"""
Account merge.

Used when a signed-in user verifies an email that belongs to another
account, and when an OAuth login is made by someone holding the token of
an invitation-only account. All rewrites go into a single transaction so
no reference to the merged account survives a partial failure.
"""

import logging

from shared.keys import Key, replace_key, unique_keys
from shared.reads import replace_reader
from modules.users.models import User
from modules.users.repository import UserRepository
from modules.messages.models import Message
from modules.messages.repository import MessageRepository
from modules.threads.repository import ThreadRepository
from modules.events.repository import EventRepository
from modules.notes.repository import NoteRepository

from .interfaces import IMergeService
from .exceptions import SelfMergeError

logger = logging.getLogger(__name__)


class MergeService(IMergeService):
    """Rewrites every reference from one user to another."""

    def __init__(
        self,
        users: UserRepository,
        messages: MessageRepository,
        threads: ThreadRepository,
        events: EventRepository,
        notes: NoteRepository,
    ):
        self._users = users
        self._messages = messages
        self._threads = threads
        self._events = events
        self._notes = notes

    async def merge(self, user: User, other: User) -> User:
        if user.has_key(other.key):
            raise SelfMergeError(user.id)

        async def run() -> User:
            survivor = await self._users.get_by_key(user.key, transactional=True)
            merged = await self._users.get_by_key(other.key, transactional=True)
            if survivor is None or merged is None:
                # Already merged by a concurrent request.
                return survivor or user
            await self._merge(survivor, merged)
            return survivor

        result = await self._users.datastore.run_in_transaction(run)
        logger.info("Merged user %s into %s", other.id, user.id)
        return result

    async def _merge(self, user: User, other: User) -> None:
        old, new = other.key, user.key

        await self._reassign_contacts(old, new)
        parents = await self._reassign_threads(old, new)
        parents += await self._reassign_events(old, new)
        await self._reassign_messages(old, new, parents)
        await self._reassign_notes(old, new)

        self._merge_profile(user, other)
        await self._users.commit(user)
        await self._users.delete(other)

    async def _reassign_contacts(self, old: Key, new: Key) -> None:
        holders = [u for u in await self._users.get_by_contact(old) if u.key != new]
        for holder in holders:
            holder.contacts = [k for k in replace_key(holder.contacts, old, new) if k != holder.key]
        if holders:
            await self._users.commit_multi(holders)

    async def _reassign_threads(self, old: Key, new: Key) -> list[Key]:
        threads = await self._threads.get_by_user(old)
        for thread in threads:
            if thread.owner == old:
                thread.owner = new
            thread.users = replace_key(thread.users, old, new)
            if thread.owner not in thread.users:
                thread.users.append(thread.owner)
            replace_reader(thread, old, new)
        await self._threads.commit_multi(threads)
        return [t.key for t in threads]

    async def _reassign_events(self, old: Key, new: Key) -> list[Key]:
        events = await self._events.get_by_user(old)
        for event in events:
            if event.owner == old:
                event.owner = new
            event.users = replace_key(event.users, old, new)
            if event.owner not in event.users:
                event.users.append(event.owner)
            event.hosts = replace_key(event.hosts, old, new)
            event.rsvps = [k for k in replace_key(event.rsvps, old, new) if k != event.owner]
            replace_reader(event, old, new)
        await self._events.commit_multi(events)
        return [e.key for e in events]

    async def _reassign_messages(self, old: Key, new: Key, parents: list[Key]) -> None:
        """Rewrite authorship, and read markers on every message ``old`` could see."""
        found: dict[Key, Message] = {}
        for message in await self._messages.get_by_user(old):
            found[message.key] = message
        for parent in parents:
            for message in await self._messages.get_by_parent(parent):
                found.setdefault(message.key, message)

        for message in found.values():
            if message.user == old:
                message.user = new
            replace_reader(message, old, new)
        await self._messages.commit_multi(list(found.values()))

    async def _reassign_notes(self, old: Key, new: Key) -> None:
        notes = await self._notes.get_by_owner(old)
        for note in notes:
            note.owner = new
        await self._notes.commit_multi(notes)

    def _merge_profile(self, user: User, other: User) -> None:
        user.first_name = user.first_name or other.first_name
        user.last_name = user.last_name or other.last_name
        user.avatar = user.avatar or other.avatar
        user.oauth_google_id = user.oauth_google_id or other.oauth_google_id
        user.oauth_facebook_id = user.oauth_facebook_id or other.oauth_facebook_id
        for email in other.emails:
            user.add_email(email)
        user.contacts = [
            k for k in unique_keys(user.contacts + other.contacts)
            if k != other.key and k != user.key
        ]
