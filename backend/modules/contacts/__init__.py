"""
Contacts module.

A user's address book: up to fifty other users, referenced by key on the
user record.

Public API:
- IContactService: Interface for contact list operations
- ContactListResponse: API view of the contact list
"""

from .interfaces import IContactService
from .models import ContactListResponse
from .exceptions import RegistrationRequiredError

__all__ = [
    # Interface
    "IContactService",
    # Models
    "ContactListResponse",
    # Exceptions
    "RegistrationRequiredError",
]
