"""Tests for email job validation and the logging queue."""

import pytest

from modules.email_queue.exceptions import InvalidEmailJobError
from modules.email_queue.models import EmailAction, EmailPayload, EmailType
from modules.email_queue.service import LoggingEmailQueue


class TestPayload:
    @pytest.mark.parametrize(
        "email_type,action",
        [
            (EmailType.USER, EmailAction.SEND_WELCOME),
            (EmailType.EVENT, EmailAction.SEND_INVITES),
            (EmailType.EVENT, EmailAction.SEND_UPDATED_INVITES),
            (EmailType.THREAD, EmailAction.SEND_THREAD),
        ],
    )
    def test_valid_pairs(self, email_type, action):
        assert EmailPayload(ids=["a"], type=email_type, action=action).is_valid()

    @pytest.mark.parametrize(
        "email_type,action",
        [
            (EmailType.USER, EmailAction.SEND_THREAD),
            (EmailType.THREAD, EmailAction.SEND_INVITES),
            (EmailType.EVENT, EmailAction.SEND_WELCOME),
        ],
    )
    def test_invalid_pairs(self, email_type, action):
        assert not EmailPayload(ids=["a"], type=email_type, action=action).is_valid()

    def test_wire_format(self):
        payload = EmailPayload.model_validate({"ids": ["x"], "type": "Thread", "action": "SendThread"})
        assert payload.type == EmailType.THREAD
        assert payload.model_dump(mode="json") == {"ids": ["x"], "type": "Thread", "action": "SendThread"}


class TestLoggingQueue:
    @pytest.mark.asyncio
    async def test_keeps_jobs(self):
        queue = LoggingEmailQueue()
        payload = EmailPayload(ids=["a"], type=EmailType.USER, action=EmailAction.SEND_WELCOME)

        await queue.put_email(payload)

        assert queue.jobs == [payload]

    @pytest.mark.asyncio
    async def test_rejects_invalid_jobs(self):
        queue = LoggingEmailQueue()
        with pytest.raises(InvalidEmailJobError):
            await queue.put_email(EmailPayload(ids=["a"], type=EmailType.USER, action=EmailAction.SEND_THREAD))
        assert queue.jobs == []
