"""Tests for the thread service."""

import pytest

from shared.models import UserInput
from shared.reads import is_read
from modules.email_queue.models import EmailAction
from modules.messages.exceptions import AnchorMessageError, EmptyMessageError
from modules.notifications.models import Verb
from modules.threads.exceptions import (
    ThreadAccessDeniedError,
    ThreadMembershipError,
    ThreadNotFoundError,
    UnverifiedOwnerError,
)
from modules.threads.models import CreateThreadRequest, UpdateThreadRequest
from tests.conftest import new_user


@pytest.fixture
def service(container):
    return container.threads


async def make_people(container):
    repo = container.user_repository
    ann = await repo.commit(new_user("ann@x.com", "Ann", "Lee"))
    bob = await repo.commit(new_user("bob@x.com", "Bob", "Ray"))
    cy = await repo.commit(new_user("cy@x.com", "Cy", "Fox"))
    return ann, bob, cy


async def start(service, owner, *members, body="", subject=""):
    request = CreateThreadRequest(
        subject=subject,
        users=[UserInput(id=m.id) for m in members],
        body=body,
    )
    return await service.create_thread(owner, request)


class TestCreateThread:
    @pytest.mark.asyncio
    async def test_owner_is_member(self, service, container):
        ann, bob, _ = await make_people(container)

        thread = await start(service, ann, bob)

        assert thread.owner == ann.key
        assert set(thread.users) == {ann.key, bob.key}

    @pytest.mark.asyncio
    async def test_default_subject_names_members(self, service, container):
        ann, bob, cy = await make_people(container)
        thread = await start(service, ann, bob, cy)
        assert thread.subject == "Bob, Cy and Ann"

    @pytest.mark.asyncio
    async def test_private_subject(self, service, container):
        ann, _, _ = await make_people(container)
        thread = await start(service, ann)
        assert thread.subject == "Ann's Private Convo"

    @pytest.mark.asyncio
    async def test_first_message(self, service, container):
        """A body on create becomes the anchor message and queues the thread email."""
        ann, bob, _ = await make_people(container)

        thread = await start(service, ann, bob, body="hello", subject="Plans")

        assert thread.preview is not None
        assert thread.preview.body == "hello"
        assert thread.response_count == 1
        assert container.notifier.sent == []
        assert container.queue.jobs[-1].action == EmailAction.SEND_THREAD

    @pytest.mark.asyncio
    async def test_unregistered_owner(self, service, container):
        owner = await container.user_repository.commit(new_user("ann@x.com", registered=False))
        with pytest.raises(UnverifiedOwnerError):
            await start(service, owner)

    @pytest.mark.asyncio
    async def test_member_limit_counts_owner(self, service, container):
        ann, _, _ = await make_people(container)
        ten = [UserInput(email=f"friend{i}@x.com") for i in range(10)]

        thread = await service.create_thread(ann, CreateThreadRequest(users=ten))
        assert len(thread.users) == 11

        eleven = ten + [UserInput(email="one-too-many@x.com")]
        with pytest.raises(ThreadMembershipError):
            await service.create_thread(ann, CreateThreadRequest(users=eleven))

    @pytest.mark.asyncio
    async def test_rejected_create_leaves_nothing_behind(self, service, container):
        """Eleven new addresses plus the owner is too many; nobody is created or welcomed."""
        ann, _, _ = await make_people(container)
        eleven = [UserInput(email=f"friend{i}@x.com") for i in range(11)]

        with pytest.raises(ThreadMembershipError):
            await service.create_thread(ann, CreateThreadRequest(users=eleven))

        assert len(await container.user_repository.list_all()) == 3
        assert await container.users.get_user_by_email("friend0@x.com") is None
        assert container.queue.jobs == []

    @pytest.mark.asyncio
    async def test_oversized_request(self, service, container):
        ann, _, _ = await make_people(container)
        twelve = [UserInput(email=f"friend{i}@x.com") for i in range(12)]

        with pytest.raises(ThreadMembershipError) as exc_info:
            await service.create_thread(ann, CreateThreadRequest(users=twelve))

        assert exc_info.value.messages == {"message": "Convos have a maximum of 11 members"}
        assert len(await container.user_repository.list_all()) == 3


class TestMembership:
    @pytest.mark.asyncio
    async def test_add_user_by_email(self, service, container):
        """Adding an unknown address creates the user and queues the thread email."""
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob)

        thread = await service.add_user(thread.id, ann, "new@x.com")

        added = await container.users.get_user_by_email("new@x.com")
        assert thread.has_user(added.key)
        assert container.queue.jobs[-1].action == EmailAction.SEND_THREAD
        assert container.queue.jobs[-1].ids == [thread.id]

    @pytest.mark.asyncio
    async def test_only_owner_adds(self, service, container):
        ann, bob, cy = await make_people(container)
        thread = await start(service, ann, bob)
        with pytest.raises(ThreadAccessDeniedError):
            await service.add_user(thread.id, bob, cy.id)

    @pytest.mark.asyncio
    async def test_add_existing_member(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob)
        with pytest.raises(ThreadMembershipError):
            await service.add_user(thread.id, ann, bob.id)

    @pytest.mark.asyncio
    async def test_member_leaves(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob)

        thread = await service.remove_user(thread.id, bob, bob.id)

        assert not thread.has_user(bob.key)
        with pytest.raises(ThreadAccessDeniedError):
            await service.get_thread(thread.id, bob)

    @pytest.mark.asyncio
    async def test_member_cannot_remove_others(self, service, container):
        ann, bob, cy = await make_people(container)
        thread = await start(service, ann, bob, cy)
        with pytest.raises(ThreadAccessDeniedError):
            await service.remove_user(thread.id, bob, cy.id)

    @pytest.mark.asyncio
    async def test_owner_cannot_be_removed(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob)
        with pytest.raises(ThreadMembershipError) as exc_info:
            await service.remove_user(thread.id, ann, ann.id)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_outsider_sees_not_found(self, service, container):
        ann, bob, cy = await make_people(container)
        thread = await start(service, ann, bob)
        with pytest.raises(ThreadAccessDeniedError) as exc_info:
            await service.get_thread(thread.id, cy)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_update_subject_owner_only(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob)

        updated = await service.update_thread(thread.id, ann, UpdateThreadRequest(subject="Renamed"))
        assert updated.subject == "Renamed"

        with pytest.raises(ThreadAccessDeniedError):
            await service.update_thread(thread.id, bob, UpdateThreadRequest(subject="Mine"))


class TestMessages:
    @pytest.mark.asyncio
    async def test_post_clears_other_reads(self, service, container):
        ann, bob, cy = await make_people(container)
        thread = await start(service, ann, bob, cy, body="first")
        await service.mark_read(thread.id, bob)

        await service.add_message(thread.id, cy, "second")

        thread = await service.get_thread(thread.id, ann)
        assert thread.response_count == 2
        assert is_read(thread, cy.key)
        assert not is_read(thread, bob.key)
        notification = container.notifier.sent[-1]
        assert notification.verb == Verb.NEW_MESSAGE
        assert set(notification.user_keys) == {ann.key, bob.key}

    @pytest.mark.asyncio
    async def test_empty_message(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob)
        with pytest.raises(EmptyMessageError):
            await service.add_message(thread.id, bob, "   ")

    @pytest.mark.asyncio
    async def test_first_reply_link_names_thread(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob, body="first", subject="Plans")

        await service.add_message(thread.id, bob, "look https://example.com/menu")
        await service.add_message(thread.id, ann, "or https://example.com/other")

        thread = await service.get_thread(thread.id, ann)
        assert thread.subject == "Title of https://example.com/menu"

    @pytest.mark.asyncio
    async def test_anchor_message_cannot_be_deleted(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob, body="first")
        with pytest.raises(AnchorMessageError):
            await service.delete_message(thread.id, ann, thread.preview.message.encode())

    @pytest.mark.asyncio
    async def test_delete_reply(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob, body="first")
        reply = await service.add_message(thread.id, bob, "second")

        await service.delete_message(thread.id, bob, reply.id)

        thread = await service.get_thread(thread.id, ann)
        assert thread.response_count == 1
        assert [m.body for m in await service.get_messages(thread.id, ann)] == ["first"]

    @pytest.mark.asyncio
    async def test_only_author_deletes(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob, body="first")
        reply = await service.add_message(thread.id, bob, "second")
        with pytest.raises(ThreadAccessDeniedError):
            await service.delete_message(thread.id, ann, reply.id)

    @pytest.mark.asyncio
    async def test_mark_read_marks_messages(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob, body="first")
        await service.add_message(thread.id, ann, "second")

        thread = await service.mark_read(thread.id, bob)
        again = await service.mark_read(thread.id, bob)

        assert is_read(thread, bob.key)
        assert again.reads == thread.reads
        for message in await service.get_messages(thread.id, bob):
            assert is_read(message, bob.key)

    @pytest.mark.asyncio
    async def test_delete_thread_removes_messages(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob, body="first")

        await service.delete_thread(thread.id, ann)

        with pytest.raises(ThreadNotFoundError):
            await service.get_thread(thread.id, ann)
        assert await container.message_repository.get_by_parent(thread.key) == []

    @pytest.mark.asyncio
    async def test_view_lists_members(self, service, container):
        ann, bob, _ = await make_people(container)
        thread = await start(service, ann, bob, body="first")

        view = await service.thread_view(thread)

        assert view.owner.full_name == "Ann Lee"
        assert {u.full_name for u in view.users} == {"Ann Lee", "Bob Ray"}
        assert view.preview.body == "first"
        assert [u.id for u in view.reads] == [ann.id]
