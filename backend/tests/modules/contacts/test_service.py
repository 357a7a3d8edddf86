"""Tests for contact list management."""

import pytest

from shared.models import UserInput
from modules.contacts.exceptions import RegistrationRequiredError
from modules.users.exceptions import ContactError
from modules.users.models import MAX_CONTACTS
from tests.conftest import new_user


@pytest.fixture
def service(container):
    return container.contacts


class TestContacts:
    @pytest.mark.asyncio
    async def test_add_by_id_and_email(self, service, container):
        repo = container.user_repository
        ann = await repo.commit(new_user("ann@x.com"))
        bob = await repo.commit(new_user("bob@x.com", "Bob", "Ray"))

        added = await service.add_contact(ann, UserInput(id=bob.id))
        invited = await service.add_contact(ann, UserInput(email="new@x.com"))

        assert added.full_name == "Bob Ray"
        assert invited.full_name == "new"
        contacts = await service.get_contacts(await repo.get_by_key(ann.key))
        assert [c.id for c in contacts] == [bob.id, invited.id]

    @pytest.mark.asyncio
    async def test_no_self_or_duplicate(self, service, container):
        repo = container.user_repository
        ann = await repo.commit(new_user("ann@x.com"))
        bob = await repo.commit(new_user("bob@x.com"))
        await service.add_contact(ann, UserInput(id=bob.id))

        with pytest.raises(ContactError):
            await service.add_contact(ann, UserInput(id=ann.id))
        with pytest.raises(ContactError):
            await service.add_contact(ann, UserInput(id=bob.id))

    @pytest.mark.asyncio
    async def test_limit(self, service, container):
        ann = await container.user_repository.commit(new_user("ann@x.com"))
        for i in range(MAX_CONTACTS):
            await service.add_contact(ann, UserInput(email=f"friend{i}@x.com"))

        with pytest.raises(ContactError) as exc_info:
            await service.add_contact(ann, UserInput(email="one-more@x.com"))
        assert exc_info.value.messages == {"message": "You can have a maximum of 50 contacts"}

    @pytest.mark.asyncio
    async def test_unregistered_user(self, service, container):
        ann = await container.user_repository.commit(new_user("ann@x.com", registered=False))
        with pytest.raises(RegistrationRequiredError):
            await service.add_contact(ann, UserInput(email="bob@x.com"))

    @pytest.mark.asyncio
    async def test_remove(self, service, container):
        repo = container.user_repository
        ann = await repo.commit(new_user("ann@x.com"))
        bob = await repo.commit(new_user("bob@x.com"))
        await service.add_contact(ann, UserInput(id=bob.id))

        await service.remove_contact(ann, bob.id)

        assert await service.get_contacts(ann) == []
        with pytest.raises(ContactError):
            await service.remove_contact(ann, bob.id)
