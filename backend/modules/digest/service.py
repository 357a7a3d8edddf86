"""
Daily digest.

For every user who wants one, collects the unread messages of their
threads and events together with events starting in the next day, sends
one email and marks what it included as read.
"""

import logging
from typing import Union

from shared.exceptions import ConvoError
from shared.keys import Key, unique_keys
from shared.log import alarm
from shared.reads import is_read, mark_read
from modules.events.models import Event
from modules.events.repository import EventRepository
from modules.mail.models import DigestItem
from modules.mail.service import MailService
from modules.messages.models import Message
from modules.messages.service import MessageService
from modules.threads.models import Thread
from modules.threads.repository import ThreadRepository
from modules.users.models import User
from modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DIGEST_MESSAGES = 5


class DigestService:
    """Builds and sends digests."""

    def __init__(
        self,
        users: UserRepository,
        threads: ThreadRepository,
        events: EventRepository,
        messages: MessageService,
        mail: MailService,
    ):
        self._users = users
        self._threads = threads
        self._events = events
        self._messages = messages
        self._mail = mail

    async def run(self) -> int:
        """
        Sweep every user. Returns the number of digests sent.

        A failure for one user is logged and the sweep continues.
        """
        users = await self._users.list_all()
        logger.info("Digest sweep over %d user(s)", len(users))

        sent = 0
        for user in users:
            if not user.send_digest:
                continue
            try:
                if await self.send_digest(user):
                    sent += 1
            except ConvoError as e:
                alarm(e.with_op(f"DigestService.run(user={user.id})"))

        logger.info("Digest sweep sent %d digest(s)", sent)
        return sent

    async def _unread_tail(self, parent: Key, user: User) -> list[Message]:
        messages = await self._messages.get_messages(parent)
        unread = [m for m in messages if not is_read(m, user.key)]
        return unread[-DIGEST_MESSAGES:]

    async def send_digest(self, user: User) -> bool:
        """
        Send ``user`` their digest if there is anything to report.

        Returns whether an email was sent.
        """
        events = await self._events.get_by_user(user.key)
        threads = await self._threads.get_by_user(user.key)

        upcoming = [e for e in events if e.is_upcoming()]
        unread: list[Union[Thread, Event]] = [
            *(e for e in events if not is_read(e, user.key)),
            *(t for t in threads if not is_read(t, user.key)),
        ]

        sections: list[DigestItem] = []
        included: list[Message] = []
        for aggregate in unread:
            tail = await self._unread_tail(aggregate.key, user)
            if not tail:
                continue
            sections.append(DigestItem(parent=aggregate.key, name=aggregate.display_name, messages=tail))
            included.extend(tail)

        if not sections and not upcoming:
            return False

        authors = await self._users.get_multi(unique_keys([m.user for m in included]))
        await self._mail.send_digest(
            user,
            sections,
            upcoming,
            {author.key: author for author in authors if author is not None},
        )

        for message in included:
            mark_read(message, user.key)
        if included:
            await self._messages.commit_multi(included)
        await self._mark_aggregates(user, [a for a in unread if isinstance(a, Thread)], self._threads)
        await self._mark_aggregates(user, [a for a in unread if isinstance(a, Event)], self._events)

        logger.info(
            "Sent digest to user %s with %d section(s) and %d upcoming event(s)",
            user.id,
            len(sections),
            len(upcoming),
        )
        return True

    @staticmethod
    async def _mark_aggregates(
        user: User,
        aggregates: list,
        repository: Union[ThreadRepository, EventRepository],
    ) -> None:
        if not aggregates:
            return
        for aggregate in aggregates:
            mark_read(aggregate, user.key)
        await repository.commit_multi(aggregates)
