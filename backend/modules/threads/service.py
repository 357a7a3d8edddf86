"""
Thread service.

Threads are private group conversations of up to eleven members. The
owner is always a member. Posting a message clears every read marker on
the thread except the author's, pushes a notification to the other
members and queues the thread email for members who only use Convo
through their inbox.
"""

import logging
from typing import Optional

from shared.datastore import Datastore, after_commit, transactional
from shared.exceptions import ConvoError
from shared.keys import Key, unique_keys
from shared.log import alarm
from shared.models import Pagination
from shared.reads import clear_reads, is_read, mark_read, readers
from shared.validation import is_email
from modules.email_queue.interfaces import IEmailQueue
from modules.email_queue.models import EmailAction, EmailPayload, EmailType
from modules.messages.exceptions import AnchorMessageError, MessageNotFoundError
from modules.messages.models import Message, MessageView
from modules.messages.service import MessageService
from modules.notifications.interfaces import INotifier
from modules.notifications.models import Notification, Target, Verb, filter_key
from modules.users.interfaces import IUserService
from modules.users.models import User, UserPartial

from .interfaces import IThreadService
from .models import (
    MAX_SUBJECT_LENGTH,
    MAX_THREAD_USERS,
    CreateThreadRequest,
    Thread,
    ThreadPreview,
    ThreadView,
    UpdateThreadRequest,
)
from .repository import ThreadRepository
from .exceptions import (
    ThreadAccessDeniedError,
    ThreadMembershipError,
    UnverifiedOwnerError,
)

logger = logging.getLogger(__name__)


def default_subject(owner: User, users: list[User]) -> str:
    """Name a thread after its members: "Ann, Bob and Cy"."""
    if len(users) == 1:
        return f"{owner.first_name}'s Private Convo"
    names = [user.first_name for user in users]
    return ", ".join(names[:-1]) + " and " + names[-1]


class ThreadService(IThreadService):
    """Thread membership, messages and read markers."""

    def __init__(
        self,
        repository: ThreadRepository,
        users: IUserService,
        messages: MessageService,
        notifier: INotifier,
        queue: IEmailQueue,
    ):
        self._repo = repository
        self._users = users
        self._messages = messages
        self._notifier = notifier
        self._queue = queue

    @property
    def datastore(self) -> Datastore:
        return self._repo.datastore

    # Side effects

    async def _notify(self, thread: Thread, actor: User, recipients: list[Key]) -> None:
        if not recipients:
            return
        notification = Notification(
            user_keys=recipients,
            actor=actor.full_name,
            verb=Verb.NEW_MESSAGE,
            target=Target.THREAD,
            target_id=thread.id,
            target_name=thread.subject,
        )

        async def put() -> None:
            try:
                await self._notifier.put(notification)
            except ConvoError as e:
                alarm(e.with_op(f"ThreadService.notify({thread.id})"))

        await after_commit(put)

    async def _enqueue_send(self, thread: Thread) -> None:
        payload = EmailPayload(ids=[thread.id], type=EmailType.THREAD, action=EmailAction.SEND_THREAD)

        async def put() -> None:
            try:
                await self._queue.put_email(payload)
            except ConvoError as e:
                alarm(e.with_op(f"ThreadService.enqueue_send({thread.id})"))

        await after_commit(put)

    # Lookups

    async def _get_for(self, thread_id: str, user: User) -> Thread:
        thread = await self._repo.get(thread_id)
        if not (thread.owner_is(user.key) or thread.has_user(user.key)):
            raise ThreadAccessDeniedError(thread_id, user.id)
        return thread

    async def _get_owned(self, thread_id: str, user: User) -> Thread:
        thread = await self._repo.get(thread_id)
        if not thread.owner_is(user.key):
            raise ThreadAccessDeniedError(thread_id, user.id)
        return thread

    async def get_threads(self, user: User, pagination: Optional[Pagination] = None) -> list[Thread]:
        return await self._repo.get_by_user(user.key, pagination or Pagination())

    async def get_thread(self, thread_id: str, user: User) -> Thread:
        return await self._get_for(thread_id, user)

    async def get_thread_by_numeric_id(self, numeric_id: int) -> Optional[Thread]:
        return await self._repo.get_by_numeric_id(numeric_id)

    # Threads

    @transactional
    async def create_thread(self, owner: User, request: CreateThreadRequest) -> Thread:
        if not owner.is_registered:
            raise UnverifiedOwnerError(owner.id)
        if len(request.users) > MAX_THREAD_USERS:
            raise ThreadMembershipError("", "Convos have a maximum of 11 members")

        members = await self._users.get_or_create_users(request.users)
        if not any(user.has_key(owner.key) for user in members):
            members.append(owner)
        if len(members) > MAX_THREAD_USERS:
            raise ThreadMembershipError("", "Convos have a maximum of 11 members")

        thread = Thread(
            owner=owner.key,
            users=unique_keys([user.key for user in members]),
            subject=request.subject or default_subject(owner, members)[:MAX_SUBJECT_LENGTH],
        )
        await self._repo.commit(thread)
        logger.info("User %s created thread %s", owner.id, thread.id)

        if request.body or request.blob:
            await self._add_message(thread, owner, request.body, request.blob, notify=False)
        elif thread.is_sendable():
            await self._enqueue_send(thread)
        return thread

    @transactional
    async def update_thread(self, thread_id: str, user: User, request: UpdateThreadRequest) -> Thread:
        thread = await self._get_owned(thread_id, user)
        thread.subject = request.subject
        return await self._repo.commit(thread)

    @transactional
    async def delete_thread(self, thread_id: str, user: User) -> Thread:
        thread = await self._get_owned(thread_id, user)
        await self._messages.delete_messages(thread.key)
        await self._repo.delete(thread)
        logger.info("User %s deleted thread %s", user.id, thread.id)
        return thread

    # Membership

    @transactional
    async def add_user(self, thread_id: str, actor: User, user_ref: str) -> Thread:
        thread = await self._get_owned(thread_id, actor)

        if is_email(user_ref):
            added = await self._users.get_or_create_by_email(user_ref)
        else:
            added = await self._users.get_user(user_ref)

        if thread.owner_is(added.key) or thread.has_user(added.key):
            raise ThreadMembershipError(thread.id, "This user is already a member of this Convo")
        if len(thread.users) >= MAX_THREAD_USERS:
            raise ThreadMembershipError(thread.id, "This Convo has the maximum number of users")

        thread.users.append(added.key)
        await self._repo.commit(thread)

        if not added.is_registered:
            await self._enqueue_send(thread)
        await self._notify(thread, actor, [added.key])
        return thread

    @transactional
    async def remove_user(self, thread_id: str, actor: User, user_id: str) -> Thread:
        thread = await self._get_for(thread_id, actor)
        removed = await self._users.get_user(user_id)

        if not thread.has_user(removed.key):
            raise ThreadAccessDeniedError(thread_id, actor.id)
        if not (thread.owner_is(actor.key) or removed.has_key(actor.key)):
            raise ThreadAccessDeniedError(thread_id, actor.id)
        if thread.owner_is(removed.key):
            raise ThreadMembershipError(thread.id, "The Convo owner cannot be removed from the convo")

        thread.users.remove(removed.key)
        return await self._repo.commit(thread)

    # Messages

    async def get_messages(
        self,
        thread_id: str,
        user: User,
        pagination: Optional[Pagination] = None,
    ) -> list[Message]:
        thread = await self._get_for(thread_id, user)
        return await self._messages.get_messages(thread.key, pagination)

    @transactional
    async def add_message(self, thread_id: str, author: User, body: str, blob: str = "") -> Message:
        thread = await self._get_for(thread_id, author)
        return await self._add_message(thread, author, body, blob)

    @transactional
    async def post_message(self, thread: Thread, author: User, body: str, blob: str = "") -> Message:
        return await self._add_message(thread, author, body, blob)

    async def _add_message(
        self,
        thread: Thread,
        author: User,
        body: str,
        blob: str = "",
        notify: bool = True,
    ) -> Message:
        message = await self._messages.new_message(author, thread.key, body, blob)

        if thread.preview is None:
            thread.preview = ThreadPreview.from_message(message)
        elif thread.response_count == 1 and message.link is not None and message.link.title:
            # First reply: a shared link names the conversation.
            thread.subject = message.link.title[:MAX_SUBJECT_LENGTH]

        thread.response_count += 1
        clear_reads(thread)
        mark_read(thread, author.key)
        await self._repo.commit(thread)

        if notify:
            await self._notify(thread, author, filter_key(thread.users, author.key))
        if thread.is_sendable():
            await self._enqueue_send(thread)
        return message

    @transactional
    async def delete_message(self, thread_id: str, user: User, message_id: str) -> Message:
        thread = await self._get_for(thread_id, user)
        message = await self._messages.get_message(message_id)

        if not message.owner_is(user.key):
            raise ThreadAccessDeniedError(thread_id, user.id)
        if message.parent != thread.key:
            raise MessageNotFoundError(message_id)
        if thread.is_preview(message):
            raise AnchorMessageError(message_id)

        await self._messages.delete_message(message, user)
        thread.response_count = max(thread.response_count - 1, 0)
        await self._repo.commit(thread, touch=False)
        return message

    # Reads

    @transactional
    async def mark_read(self, thread_id: str, user: User) -> Thread:
        thread = await self._get_for(thread_id, user)
        if is_read(thread, user.key):
            return thread

        await self._messages.mark_messages_as_read(user.key, thread.key)
        mark_read(thread, user.key)
        return await self._repo.commit(thread, touch=False)

    # Views

    async def _partials(self, keys: list[Key]) -> dict[Key, UserPartial]:
        return await self._users.get_partials(unique_keys(keys))

    def _view(self, thread: Thread, partials: dict[Key, UserPartial]) -> ThreadView:
        preview = None
        if thread.preview is not None:
            preview = MessageView.from_message(
                thread.preview.to_message(thread.key),
                partials.get(thread.preview.user),
            )
        return ThreadView(
            id=thread.id,
            owner=partials.get(thread.owner),
            users=[partials[k] for k in thread.users if k in partials],
            subject=thread.subject,
            preview=preview,
            reads=[partials[k] for k in readers(thread) if k in partials],
            response_count=thread.response_count,
        )

    @staticmethod
    def _referenced(thread: Thread) -> list[Key]:
        keys = [thread.owner, *thread.users]
        if thread.preview is not None:
            keys.append(thread.preview.user)
        return keys

    async def thread_view(self, thread: Thread) -> ThreadView:
        return self._view(thread, await self._partials(self._referenced(thread)))

    async def thread_views(self, threads: list[Thread]) -> list[ThreadView]:
        keys: list[Key] = []
        for thread in threads:
            keys.extend(self._referenced(thread))
        partials = await self._partials(keys)
        return [self._view(thread, partials) for thread in threads]

    async def message_views(self, messages: list[Message]) -> list[MessageView]:
        partials = await self._partials([m.user for m in messages])
        return [MessageView.from_message(m, partials.get(m.user)) for m in messages]
