"""
Email job models.
"""

from enum import Enum

from pydantic import BaseModel, Field

QUEUE_HEADER = "X-Appengine-QueueName"
CRON_HEADER = "X-Appengine-Cron"


class EmailType(str, Enum):
    USER = "User"
    EVENT = "Event"
    THREAD = "Thread"


class EmailAction(str, Enum):
    SEND_INVITES = "SendInvites"
    SEND_UPDATED_INVITES = "SendUpdatedInvites"
    SEND_THREAD = "SendThread"
    SEND_WELCOME = "SendWelcome"


VALID_ACTIONS: dict[EmailType, frozenset[EmailAction]] = {
    EmailType.USER: frozenset({EmailAction.SEND_WELCOME}),
    EmailType.EVENT: frozenset({EmailAction.SEND_INVITES, EmailAction.SEND_UPDATED_INVITES}),
    EmailType.THREAD: frozenset({EmailAction.SEND_THREAD}),
}


class EmailPayload(BaseModel):
    """
    A queued email job.

    ``ids`` are external ids of entities of ``type``.
    """

    ids: list[str] = Field(default_factory=list)
    type: EmailType
    action: EmailAction

    def is_valid(self) -> bool:
        return self.action in VALID_ACTIONS[self.type]
