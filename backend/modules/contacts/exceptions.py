"""
Contacts module exceptions.
"""

from shared.exceptions import ValidationError


class RegistrationRequiredError(ValidationError):
    """Raised when an incomplete user tries to add a contact."""

    def __init__(self, user_id: str):
        super().__init__(
            f"Unregistered user {user_id} cannot add contacts",
            code="REGISTRATION_REQUIRED",
            details={"user_id": user_id},
            messages={"message": "You must register before you can add contacts"},
        )
