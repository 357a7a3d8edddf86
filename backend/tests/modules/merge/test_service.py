"""Tests for account merging."""

from datetime import datetime, timedelta, timezone

import pytest

from shared.models import UserInput
from shared.reads import is_read
from modules.events.models import CreateEventRequest
from modules.merge.exceptions import SelfMergeError
from modules.notes.models import Note
from modules.threads.models import CreateThreadRequest
from tests.conftest import new_user


async def make_world(container):
    """Ann absorbs Vee, who is on Bob's thread and event and in Bob's contacts."""
    repo = container.user_repository
    ann = await repo.commit(new_user("ann@x.com", "Ann", "Lee"))
    bob = await repo.commit(new_user("bob@x.com", "Bob", "Ray"))
    vee = await repo.commit(new_user("vee@x.com", "Vee", "Day"))

    thread = await container.threads.create_thread(
        bob, CreateThreadRequest(users=[UserInput(id=vee.id), UserInput(id=ann.id)], body="hi all")
    )
    await container.threads.add_message(thread.id, vee, "hi bob")
    event = await container.events.create_event(
        bob,
        CreateEventRequest(
            name="Picnic",
            place_id="park",
            timestamp=datetime.now(timezone.utc) + timedelta(days=2),
            users=[UserInput(id=vee.id)],
        ),
    )
    await container.events.add_rsvp(event.id, vee)

    bob.add_contact(vee)
    await repo.commit(bob)
    return ann, bob, vee, thread, event


class TestMerge:
    @pytest.mark.asyncio
    async def test_no_reference_survives(self, container):
        ann, bob, vee, thread, event = await make_world(container)

        merged = await container.merge.merge(ann, vee)

        assert merged.has_key(ann.key)
        assert await container.user_repository.get_by_key(vee.key) is None

        thread = await container.thread_repository.get_by_key(thread.key)
        assert vee.key not in thread.users
        assert thread.users.count(ann.key) == 1
        assert not is_read(thread, vee.key)
        assert is_read(thread, ann.key)

        event = await container.event_repository.get_by_key(event.key)
        assert vee.key not in event.users
        assert event.rsvps == [ann.key]

        messages = await container.message_repository.get_by_parent(thread.key)
        assert all(m.user != vee.key for m in messages)
        assert [m.body for m in messages if m.user == ann.key] == ["hi bob"]
        assert not any(is_read(m, vee.key) for m in messages)

        bob = await container.user_repository.get_by_key(bob.key)
        assert bob.contacts == [ann.key]

    @pytest.mark.asyncio
    async def test_emails_and_profile_move(self, container):
        repo = container.user_repository
        ann = await repo.commit(new_user("ann@x.com", "Ann", "Lee"))
        vee = new_user("vee@x.com", "Vee", "Day")
        vee.oauth_facebook_id = "fb-9"
        vee.avatar = "https://storage.local/convo/avatars/vee.png"
        await repo.commit(vee)

        merged = await container.merge.merge(ann, vee)

        assert merged.emails == ["ann@x.com", "vee@x.com"]
        assert merged.email == "ann@x.com"
        assert merged.first_name == "Ann"
        assert merged.oauth_facebook_id == "fb-9"
        assert merged.avatar.endswith("vee.png")

    @pytest.mark.asyncio
    async def test_merged_user_leaves_search(self, container):
        repo = container.user_repository
        ann = await repo.commit(new_user("ann@x.com", "Ann", "Lee"))
        vee = await repo.commit(new_user("vee@x.com", "Vee", "Day"))
        assert vee.id in container.search_index.documents

        await container.merge.merge(ann, vee)

        assert vee.id not in container.search_index.documents
        assert ann.id in container.search_index.documents

    @pytest.mark.asyncio
    async def test_mutual_contacts_collapse(self, container):
        """A contact pointing at either account does not end up pointing at itself."""
        repo = container.user_repository
        ann = await repo.commit(new_user("ann@x.com"))
        vee = await repo.commit(new_user("vee@x.com"))
        ann.add_contact(vee)
        await repo.commit(ann)
        vee.add_contact(ann)
        await repo.commit(vee)

        merged = await container.merge.merge(ann, vee)

        assert merged.contacts == []

    @pytest.mark.asyncio
    async def test_self_merge(self, container):
        ann = await container.user_repository.commit(new_user("ann@x.com"))
        with pytest.raises(SelfMergeError):
            await container.merge.merge(ann, ann)

    @pytest.mark.asyncio
    async def test_notes_change_owner(self, container):
        repo = container.user_repository
        ann = await repo.commit(new_user("ann@x.com"))
        vee = await repo.commit(new_user("vee@x.com"))
        await container.note_repository.commit(Note(owner=vee.key, body="gift ideas"))

        await container.merge.merge(ann, vee)

        assert await container.note_repository.get_by_owner(vee.key) == []
        assert [n.body for n in await container.note_repository.get_by_owner(ann.key)] == ["gift ideas"]
