"""
Email job worker.

Runs the jobs the email queue delivers: welcome threads for new users,
event invitations, and thread email for members who follow a Convo from
their inbox. A failure on one id or one recipient is logged to the alarm
channel and the rest of the job still runs.
"""

import logging
from pathlib import Path
from typing import Optional

from shared.exceptions import ConvoError
from shared.keys import Key, unique_keys
from shared.log import alarm
from shared.reads import is_read, mark_read
from shared.tokens import random_token
from modules.email_queue.exceptions import InvalidEmailJobError
from modules.email_queue.models import EmailAction, EmailPayload, EmailType
from modules.events.ics import build_ics
from modules.events.models import Event
from modules.events.repository import EventRepository
from modules.mail.service import THREAD_EMAIL_MESSAGES, MailService
from modules.messages.models import Message
from modules.messages.service import MessageService
from modules.threads.models import Thread, ThreadPreview
from modules.threads.repository import ThreadRepository
from modules.users.models import User
from modules.users.passwords import hash_password
from modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome"
WELCOME_MESSAGE = (Path(__file__).parent / "welcome.md").read_text(encoding="utf-8")
SUPPORT_FIRST_NAME = "Convo Support"


class EmailWorker:
    """Executes queued email jobs."""

    def __init__(
        self,
        users: UserRepository,
        threads: ThreadRepository,
        events: EventRepository,
        messages: MessageService,
        mail: MailService,
        support_email: str,
        support_password: str,
    ):
        self._users = users
        self._threads = threads
        self._events = events
        self._messages = messages
        self._mail = mail
        self._support_email = support_email
        self._support_password = support_password
        self._support_user: Optional[User] = None

    async def handle(self, payload: EmailPayload) -> None:
        """
        Run one job.

        Raises:
            InvalidEmailJobError: If the action does not apply to the type
        """
        if not payload.is_valid():
            raise InvalidEmailJobError(payload.type.value, payload.action.value)

        logger.info(
            "Running %s for %d %s(s)",
            payload.action.value,
            len(payload.ids),
            payload.type.value,
        )
        for entity_id in payload.ids:
            try:
                await self._handle_one(payload, entity_id)
            except ConvoError as e:
                alarm(e.with_op(f"EmailWorker.handle({payload.action.value}, {entity_id})"))

    async def _handle_one(self, payload: EmailPayload, entity_id: str) -> None:
        if payload.type == EmailType.USER:
            await self.send_welcome(await self._users.get(entity_id))
        elif payload.type == EmailType.EVENT:
            event = await self._events.get(entity_id)
            await self.send_invites(event, updated=payload.action == EmailAction.SEND_UPDATED_INVITES)
        elif payload.type == EmailType.THREAD:
            await self.send_thread(await self._threads.get(entity_id))

    # Welcome

    async def support_user(self) -> User:
        """The account welcome threads come from, created on first use."""
        if self._support_user is not None:
            return self._support_user

        user = await self._users.get_by_email(self._support_email)
        if user is None:
            user = User(
                email=self._support_email,
                emails=[self._support_email],
                first_name=SUPPORT_FIRST_NAME,
                password_digest=hash_password(self._support_password),
                token=random_token(),
            )
            await self._users.commit(user)
            logger.info("Created support user %s", user.id)
        self._support_user = user
        return user

    async def _has_welcome(self, support: User, user: User) -> bool:
        threads = await self._threads.get_by_user(user.key)
        return any(t.owner_is(support.key) and t.subject == WELCOME_SUBJECT for t in threads)

    async def send_welcome(self, user: User) -> Optional[Thread]:
        """
        Start the welcome thread between the support account and ``user``.

        The thread is marked read for ``user`` so it stays out of digests.
        Returns None when the user already has one.
        """
        support = await self.support_user()
        if user.has_key(support.key) or await self._has_welcome(support, user):
            return None

        thread = Thread(owner=support.key, users=[support.key, user.key], subject=WELCOME_SUBJECT)
        await self._threads.commit(thread)

        message = await self._messages.new_message(support, thread.key, WELCOME_MESSAGE)
        thread.preview = ThreadPreview.from_message(message)
        thread.response_count = 1
        mark_read(thread, support.key)
        mark_read(thread, user.key)
        await self._threads.commit(thread)

        logger.info("Created welcome thread for user %s", user.id)
        return thread

    # Events

    async def send_invites(self, event: Event, updated: bool = False) -> int:
        """Email the invitation to every guest who accepts event email."""
        found = await self._users.get_multi(unique_keys([event.owner, *event.users]))
        users = {user.key: user for user in found if user is not None}
        owner = users.get(event.owner)
        if owner is None:
            logger.warning("Event %s has no owner, not sending invites", event.id)
            return 0

        recipients = [
            users[key] for key in event.users
            if key in users and key != event.owner and users[key].send_events
        ]
        sent = await self._mail.send_event_invites(
            event,
            owner,
            recipients,
            build_ics(event, owner.full_name),
            updated=updated,
        )
        logger.info("Sent %d invitation(s) for event %s", sent, event.id)
        return sent

    # Threads

    def _latest_messages(self, thread: Thread, messages: list[Message]) -> list[Message]:
        latest = messages[-THREAD_EMAIL_MESSAGES:]
        if (
            len(latest) < THREAD_EMAIL_MESSAGES
            and thread.preview is not None
            and not any(thread.is_preview(m) for m in latest)
        ):
            latest.insert(0, thread.preview.to_message(thread.key))
        return latest

    async def send_thread(self, thread: Thread) -> int:
        """
        Email the latest messages to members who only use Convo by email.

        Recipients are members without an account who accept thread email
        and have not read the thread yet. They are marked as having read it
        so the same messages are not repeated in their digest.
        """
        messages = self._latest_messages(thread, await self._messages.get_messages(thread.key))
        if not messages:
            return 0

        keys: list[Key] = [*thread.users, *(m.user for m in messages)]
        found = await self._users.get_multi(unique_keys(keys))
        users = {user.key: user for user in found if user is not None}

        recipients = [
            users[key] for key in thread.users
            if key in users
            and not users[key].is_registered
            and users[key].send_threads
            and not is_read(thread, key)
        ]
        if not recipients:
            return 0

        sent = await self._mail.send_thread(thread, messages, users, recipients)
        for recipient in recipients:
            mark_read(thread, recipient.key)
        await self._threads.commit(thread, touch=False)

        logger.info("Sent thread %s to %d member(s)", thread.id, sent)
        return sent
