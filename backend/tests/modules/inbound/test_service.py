"""Tests for inbound email ingest."""

import json

import pytest

from shared.models import UserInput
from modules.inbound.exceptions import InboundRejectedError
from modules.inbound.service import addresses_from_envelope, html_to_text, thread_id_from_address
from modules.threads.models import CreateThreadRequest
from tests.conftest import new_user


def envelope(to, sender="bob@x.com") -> str:
    return json.dumps({"to": to if isinstance(to, list) else [to], "from": sender})


async def make_thread(container):
    repo = container.user_repository
    ann = await repo.commit(new_user("ann@x.com", "Ann", "Lee"))
    bob = await repo.commit(new_user("bob@x.com", "Bob", "Ray"))
    thread = await container.threads.create_thread(
        ann,
        CreateThreadRequest(
            subject="Plans",
            users=[UserInput(id=bob.id), UserInput(email="guest@x.com")],
            body="lunch?",
        ),
    )
    return ann, bob, thread


class TestEnvelope:
    def test_addresses(self):
        to, sender = addresses_from_envelope(envelope("Plans-12@Mail.Host", "Bob <Bob@X.com>"))
        assert (to, sender) == ("plans-12@mail.host", "bob@x.com")

    def test_multiple_recipients(self):
        with pytest.raises(InboundRejectedError):
            addresses_from_envelope(envelope(["a-1@mail.host", "b-2@mail.host"]))

    def test_not_json(self):
        with pytest.raises(InboundRejectedError):
            addresses_from_envelope("to=a-1@mail.host")

    def test_bad_sender(self):
        with pytest.raises(InboundRejectedError):
            addresses_from_envelope(envelope("a-1@mail.host", "nobody"))

    def test_thread_id(self):
        assert thread_id_from_address("hi-there-42@mail.convo.events") == 42
        with pytest.raises(InboundRejectedError):
            thread_id_from_address("hello@mail.convo.events")

    def test_html_body(self):
        assert html_to_text("<div><p>Sounds good</p></div>") == "Sounds good"


class TestIngest:
    @pytest.mark.asyncio
    async def test_reply_becomes_message(self, container):
        ann, bob, thread = await make_thread(container)

        message = await container.inbound.ingest(
            envelope(f"plans-{thread.key.id}@mail.host"),
            text="Count me in &amp; Cy too\n--",
        )

        assert message.user == bob.key
        assert message.body == "Count me in & Cy too"
        thread = await container.thread_repository.get_by_key(thread.key)
        assert thread.response_count == 2
        assert container.mailer.outbox[-1].to_email == "guest@x.com"

    @pytest.mark.asyncio
    async def test_html_only_reply(self, container):
        ann, bob, thread = await make_thread(container)

        message = await container.inbound.ingest(
            envelope(f"plans-{thread.key.id}@mail.host"),
            html_body="<p>On my way</p>",
        )

        assert message.body == "On my way"

    @pytest.mark.asyncio
    async def test_same_reply_twice(self, container):
        """Each delivery of an envelope posts its own message."""
        ann, bob, thread = await make_thread(container)
        to = envelope(f"plans-{thread.key.id}@mail.host")

        first = await container.inbound.ingest(to, text="See you there")
        second = await container.inbound.ingest(to, text="See you there")

        assert first.id != second.id
        messages = await container.threads.get_messages(thread.id, ann)
        assert [m.body for m in messages] == ["lunch?", "See you there", "See you there"]

    @pytest.mark.asyncio
    async def test_unknown_thread(self, container):
        await container.user_repository.commit(new_user("bob@x.com"))

        with pytest.raises(InboundRejectedError):
            await container.inbound.ingest(envelope("gone-999@mail.host"), text="hello?")

        explained = container.mailer.outbox[-1]
        assert explained.to_email == "bob@x.com"
        assert explained.subject == "[convo] Your reply was not delivered"

    @pytest.mark.asyncio
    async def test_non_member(self, container):
        ann, bob, thread = await make_thread(container)
        await container.user_repository.commit(new_user("cy@x.com"))

        with pytest.raises(InboundRejectedError):
            await container.inbound.ingest(envelope(f"plans-{thread.key.id}@mail.host", "cy@x.com"), text="hi")

        assert container.mailer.outbox[-1].to_email == "cy@x.com"
        assert "not a member" in container.mailer.outbox[-1].text

    @pytest.mark.asyncio
    async def test_empty_reply(self, container):
        ann, bob, thread = await make_thread(container)
        with pytest.raises(InboundRejectedError):
            await container.inbound.ingest(envelope(f"plans-{thread.key.id}@mail.host"), text="  --  ")
