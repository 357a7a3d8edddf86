"""
Contacts module interface.
"""

from typing import Protocol, runtime_checkable

from shared.models import UserInput
from modules.users.models import User, UserPartial


@runtime_checkable
class IContactService(Protocol):
    """
    Interface for managing a user's contacts.
    """

    async def get_contacts(self, user: User) -> list[UserPartial]:
        ...

    async def add_contact(self, user: User, contact: UserInput) -> UserPartial:
        """
        Add a contact by id, or by email (creating an incomplete user).

        Raises:
            RegistrationRequiredError: If ``user`` is not registered
            ContactError: If the contact is a duplicate, ``user`` itself,
                or the list is full
        """
        ...

    async def remove_contact(self, user: User, contact_id: str) -> UserPartial:
        """
        Raises:
            ContactError: If the user is not a contact
        """
        ...
