"""
Contact list views.
"""

from shared.models import ApiModel
from modules.users.models import UserPartial


class ContactListResponse(ApiModel):
    contacts: list[UserPartial]
