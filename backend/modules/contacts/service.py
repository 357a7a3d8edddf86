"""
Contact list management.
"""

import logging

from shared.datastore import Datastore, transactional
from shared.models import UserInput
from modules.users.exceptions import InvalidUsersError
from modules.users.interfaces import IUserService
from modules.users.models import User, UserPartial

from .interfaces import IContactService
from .exceptions import RegistrationRequiredError

logger = logging.getLogger(__name__)


class ContactService(IContactService):
    """Contacts are stored on the user record; this service edits that list."""

    def __init__(self, users: IUserService, datastore: Datastore):
        self._users = users
        self.datastore = datastore

    async def get_contacts(self, user: User) -> list[UserPartial]:
        partials = await self._users.get_partials(user.contacts)
        return [partials[key] for key in user.contacts if key in partials]

    @transactional
    async def add_contact(self, user: User, contact: UserInput) -> UserPartial:
        if not user.is_registered:
            raise RegistrationRequiredError(user.id)

        if contact.id:
            added = await self._users.get_user(contact.id)
        elif contact.email:
            added = await self._users.get_or_create_by_email(contact.email)
        else:
            raise InvalidUsersError("Provide an id or an email", field="message")

        user.add_contact(added)
        await self._users.commit(user)
        logger.info("User %s added contact %s", user.id, added.id)
        return UserPartial.from_user(added)

    @transactional
    async def remove_contact(self, user: User, contact_id: str) -> UserPartial:
        removed = await self._users.get_user(contact_id)
        user.remove_contact(removed)
        await self._users.commit(user)
        return UserPartial.from_user(removed)
