"""
Notification models.
"""

from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field

from shared.keys import Key


class Verb(str, Enum):
    NEW_EVENT = "NewEvent"
    UPDATE_EVENT = "UpdateEvent"
    DELETE_EVENT = "DeleteEvent"
    ADD_RSVP = "AddRSVP"
    REMOVE_RSVP = "RemoveRSVP"
    NEW_MESSAGE = "NewMessage"


class Target(str, Enum):
    THREAD = "thread"
    EVENT = "event"


class Notification(BaseModel):
    """
    One activity to fan out to a set of users.

    Attributes:
        user_keys: Recipients
        actor: Display name of the user who acted
        verb: What happened
        target: Kind of aggregate it happened on
        target_id: External id of the aggregate
        target_name: Thread subject or event name
    """

    user_keys: list[Key] = Field(default_factory=list)
    actor: str
    verb: Verb
    target: Target
    target_id: str
    target_name: str = ""

    def activity(self) -> dict:
        """Activity document as stored in a recipient's feed."""
        return {
            "actor": self.actor,
            "verb": self.verb.value,
            "object": f"{self.target.value}:{self.target_id}",
            "target": self.target.value,
            "targetName": self.target_name,
        }


def filter_key(keys: Iterable[Key], to_filter: Key) -> list[Key]:
    """Return ``keys`` without ``to_filter``."""
    return [key for key in keys if key != to_filter]
