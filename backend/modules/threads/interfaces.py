"""
Threads module interface.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import Pagination
from modules.messages.models import Message, MessageView
from modules.users.models import User

from .models import CreateThreadRequest, Thread, ThreadView, UpdateThreadRequest


@runtime_checkable
class IThreadService(Protocol):
    """
    Interface for threads and their messages.

    Every operation taking a ``user`` checks that the user participates
    in the thread. Permission failures are reported as not found.
    """

    async def create_thread(self, owner: User, request: CreateThreadRequest) -> Thread:
        """
        Start a thread, creating incomplete users for unknown emails.

        Raises:
            UnverifiedOwnerError: If ``owner`` is not registered
            ThreadMembershipError: If there would be more than eleven members
            InvalidUsersError: If a user reference cannot be resolved
        """
        ...

    async def get_threads(self, user: User, pagination: Optional[Pagination] = None) -> list[Thread]:
        """Threads ``user`` is in, most recently active first."""
        ...

    async def get_thread(self, thread_id: str, user: User) -> Thread:
        """
        Raises:
            ThreadNotFoundError: If the thread does not exist
            ThreadAccessDeniedError: If ``user`` is not a participant
        """
        ...

    async def get_thread_by_numeric_id(self, numeric_id: int) -> Optional[Thread]:
        """Resolve the id embedded in a reply address."""
        ...

    async def update_thread(self, thread_id: str, user: User, request: UpdateThreadRequest) -> Thread:
        """Change the subject. Owner only."""
        ...

    async def delete_thread(self, thread_id: str, user: User) -> Thread:
        """Delete the thread and its messages. Owner only."""
        ...

    async def add_user(self, thread_id: str, actor: User, user_ref: str) -> Thread:
        """
        Add a participant by id or by email address. Owner only.

        Raises:
            ThreadMembershipError: If already a member or the thread is full
        """
        ...

    async def remove_user(self, thread_id: str, actor: User, user_id: str) -> Thread:
        """
        Remove a participant. The owner may remove anyone else; participants
        may remove themselves.
        """
        ...

    async def get_messages(
        self,
        thread_id: str,
        user: User,
        pagination: Optional[Pagination] = None,
    ) -> list[Message]:
        ...

    async def add_message(self, thread_id: str, author: User, body: str, blob: str = "") -> Message:
        ...

    async def post_message(self, thread: Thread, author: User, body: str, blob: str = "") -> Message:
        """Post to a thread the caller already resolved and authorized."""
        ...

    async def delete_message(self, thread_id: str, user: User, message_id: str) -> Message:
        """
        Raises:
            MessageNotFoundError: If the message is not in this thread
            MessageAccessDeniedError: If ``user`` is not the author
            AnchorMessageError: If it is the thread's first message
        """
        ...

    async def mark_read(self, thread_id: str, user: User) -> Thread:
        ...

    async def thread_view(self, thread: Thread) -> ThreadView:
        ...

    async def thread_views(self, threads: list[Thread]) -> list[ThreadView]:
        ...

    async def message_views(self, messages: list[Message]) -> list[MessageView]:
        ...
