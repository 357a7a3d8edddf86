"""Tests for the event service."""

from datetime import datetime, timedelta, timezone

import pytest

from shared.models import UserInput
from shared.reads import is_read
from modules.email_queue.models import EmailAction
from modules.events.exceptions import (
    EventAccessDeniedError,
    EventMembershipError,
    EventNotFoundError,
    EventValidationError,
    NotInvitedError,
    PastEventError,
    UnverifiedOwnerError,
)
from modules.events.models import (
    CreateEventRequest,
    InviteLinkRequest,
    RsvpLinkRequest,
    UpdateEventRequest,
)
from modules.magic.exceptions import InvalidSignatureError
from modules.notifications.models import Verb
from tests.conftest import link_parts, new_user


@pytest.fixture
def service(container):
    return container.events


async def make_people(container):
    repo = container.user_repository
    ann = await repo.commit(new_user("ann@x.com", "Ann", "Lee"))
    bob = await repo.commit(new_user("bob@x.com", "Bob", "Ray"))
    cy = await repo.commit(new_user("cy@x.com", "Cy", "Fox"))
    return ann, bob, cy


def tomorrow() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


async def plan(service, owner, *guests, **fields):
    request = CreateEventRequest(
        name=fields.pop("name", "Dinner"),
        place_id="place-1",
        timestamp=fields.pop("timestamp", tomorrow()),
        users=[UserInput(id=g.id) for g in guests],
        **fields,
    )
    return await service.create_event(owner, request)


class TestCreateEvent:
    @pytest.mark.asyncio
    async def test_create(self, service, container):
        ann, bob, _ = await make_people(container)

        event = await plan(service, ann, bob, name="Dinner &amp; drinks")

        assert event.name == "Dinner & drinks"
        assert set(event.users) == {ann.key, bob.key}
        assert event.address == "1 Infinite Loop"
        assert is_read(event, ann.key)
        assert len(event.token) == 32
        assert container.queue.jobs[-1].action == EmailAction.SEND_INVITES
        notification = container.notifier.sent[-1]
        assert notification.verb == Verb.NEW_EVENT
        assert notification.user_keys == [bob.key]

    @pytest.mark.asyncio
    async def test_hosts_are_guests(self, service, container):
        ann, bob, cy = await make_people(container)

        event = await plan(service, ann, bob, hosts=[UserInput(id=cy.id)])

        assert event.hosts == [cy.key]
        assert event.has_user(cy.key)

    @pytest.mark.asyncio
    async def test_request_offset_wins(self, service, container):
        ann, _, _ = await make_people(container)
        event = await plan(service, ann, utc_offset=-25200)
        assert event.utc_offset == -25200

    @pytest.mark.asyncio
    async def test_past_time(self, service, container):
        ann, _, _ = await make_people(container)
        with pytest.raises(EventValidationError) as exc_info:
            await plan(service, ann, timestamp=datetime.now(timezone.utc) - timedelta(hours=1))
        assert exc_info.value.messages == {"time": "Your event must be in the future"}

    @pytest.mark.asyncio
    async def test_guest_limit(self, service, container):
        ann, _, _ = await make_people(container)
        request = CreateEventRequest(
            name="Festival",
            place_id="place-1",
            timestamp=tomorrow(),
            users=[UserInput(email=f"guest{i}@x.com") for i in range(301)],
        )
        with pytest.raises(EventMembershipError):
            await service.create_event(ann, request)

    @pytest.mark.asyncio
    async def test_full_event(self, service, container):
        """The owner plus 299 guests is exactly the limit."""
        ann, _, _ = await make_people(container)
        request = CreateEventRequest(
            name="Festival",
            place_id="place-1",
            timestamp=tomorrow(),
            users=[UserInput(email=f"guest{i}@x.com") for i in range(299)],
        )

        event = await service.create_event(ann, request)

        assert len(event.users) == 300

    @pytest.mark.asyncio
    async def test_rejected_create_leaves_nothing_behind(self, service, container):
        """300 new guests plus the owner is one too many; no user or job survives."""
        ann, _, _ = await make_people(container)
        request = CreateEventRequest(
            name="Festival",
            place_id="place-1",
            timestamp=tomorrow(),
            users=[UserInput(email=f"guest{i}@x.com") for i in range(300)],
        )

        with pytest.raises(EventMembershipError):
            await service.create_event(ann, request)

        assert len(await container.user_repository.list_all()) == 3
        assert await container.user_repository.get_by_email("guest0@x.com") is None
        assert container.queue.jobs == []
        assert container.notifier.sent == []

    @pytest.mark.asyncio
    async def test_new_host_also_listed_as_guest(self, service, container):
        """An address given as guest and host becomes one user."""
        ann, _, _ = await make_people(container)

        request = CreateEventRequest(
            name="Dinner",
            place_id="place-1",
            timestamp=tomorrow(),
            users=[UserInput(email="dee@x.com")],
            hosts=[UserInput(email="Dee@x.com")],
        )

        event = await service.create_event(ann, request)

        dee = await container.user_repository.get_by_email("dee@x.com")
        assert event.hosts == [dee.key]
        assert set(event.users) == {ann.key, dee.key}
        assert len(await container.user_repository.list_all()) == 4

    @pytest.mark.asyncio
    async def test_unregistered_owner(self, service, container):
        owner = await container.user_repository.commit(new_user("ann@x.com", registered=False))
        with pytest.raises(UnverifiedOwnerError):
            await plan(service, owner)


class TestUpdateEvent:
    @pytest.mark.asyncio
    async def test_resend_queues_updated_invites(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)

        updated = await service.update_event(
            event.id, ann, UpdateEventRequest(name="Brunch", resend=True)
        )

        assert updated.name == "Brunch"
        assert container.queue.jobs[-1].action == EmailAction.SEND_UPDATED_INVITES
        assert container.notifier.sent[-1].verb == Verb.UPDATE_EVENT

    @pytest.mark.asyncio
    async def test_new_host_joins_guests(self, service, container):
        ann, bob, cy = await make_people(container)
        event = await plan(service, ann, bob)

        updated = await service.update_event(event.id, ann, UpdateEventRequest(hosts=[UserInput(id=cy.id)]))

        assert updated.hosts == [cy.key]
        assert updated.has_user(cy.key)

    @pytest.mark.asyncio
    async def test_only_owner_updates(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        with pytest.raises(EventAccessDeniedError):
            await service.update_event(event.id, bob, UpdateEventRequest(name="Mine"))

    @pytest.mark.asyncio
    async def test_past_event(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        event.timestamp = datetime.now(timezone.utc) - timedelta(days=1)
        await container.event_repository.commit(event)

        with pytest.raises(PastEventError):
            await service.update_event(event.id, ann, UpdateEventRequest(name="Too late"))

    @pytest.mark.asyncio
    async def test_move_into_past(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)

        with pytest.raises(EventValidationError) as exc_info:
            await service.update_event(
                event.id, ann, UpdateEventRequest(timestamp=datetime.now(timezone.utc) - timedelta(days=3))
            )

        assert exc_info.value.messages == {"time": "Your event must be in the future"}
        event = await service.get_event(event.id, ann)
        assert event.is_in_future()


class TestDeleteEvent:
    @pytest.mark.asyncio
    async def test_cancellation_mail(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)

        await service.delete_event(event.id, ann, "Sorry &amp; see you soon")

        sent = container.mailer.outbox[-1]
        assert sent.to_email == "bob@x.com"
        assert sent.subject == "Cancelled: Dinner"
        assert "Sorry & see you soon" in sent.text
        with pytest.raises(EventNotFoundError):
            await service.get_event(event.id, ann)


class TestGuests:
    @pytest.mark.asyncio
    async def test_owner_adds_by_email(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)

        event = await service.add_user(event.id, ann, "new@x.com")

        sent = container.mailer.outbox[-1]
        assert sent.to_email == "new@x.com"
        assert sent.subject == "Invitation to Dinner"
        assert sent.ics.startswith("BEGIN:VCALENDAR")
        assert len(event.users) == 3

    @pytest.mark.asyncio
    async def test_guest_invites_when_allowed(self, service, container):
        ann, bob, cy = await make_people(container)
        closed = await plan(service, ann, bob)
        with pytest.raises(EventAccessDeniedError):
            await service.add_user(closed.id, bob, cy.id)

        open_event = await plan(service, ann, bob, guests_can_invite=True)
        open_event = await service.add_user(open_event.id, bob, cy.id)
        assert open_event.has_user(cy.key)

    @pytest.mark.asyncio
    async def test_add_existing_guest(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        with pytest.raises(EventMembershipError):
            await service.add_user(event.id, ann, bob.id)

    @pytest.mark.asyncio
    async def test_full_event_rejects_guest(self, service, container):
        ann, bob, _ = await make_people(container)
        request = CreateEventRequest(
            name="Festival",
            place_id="place-1",
            timestamp=tomorrow(),
            users=[UserInput(email=f"guest{i}@x.com") for i in range(299)],
        )
        event = await service.create_event(ann, request)

        with pytest.raises(EventMembershipError) as exc_info:
            await service.add_user(event.id, ann, bob.id)

        assert exc_info.value.messages == {"message": "This event has the maximum number of guests"}
        event = await service.get_event(event.id, ann)
        assert not event.has_user(bob.key)

    @pytest.mark.asyncio
    async def test_remove_guest_clears_rsvp(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        await service.add_rsvp(event.id, bob)

        event = await service.remove_user(event.id, ann, bob.id)

        assert not event.has_user(bob.key)
        assert not event.has_rsvp(bob.key)

    @pytest.mark.asyncio
    async def test_owner_cannot_leave(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        with pytest.raises(EventMembershipError):
            await service.remove_user(event.id, ann, ann.id)


class TestRsvp:
    @pytest.mark.asyncio
    async def test_rsvp_clears_reads(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)

        event = await service.add_rsvp(event.id, bob)

        assert event.rsvps == [bob.key]
        assert event.reads == []
        notification = container.notifier.sent[-1]
        assert (notification.verb, notification.user_keys) == (Verb.ADD_RSVP, [ann.key])

    @pytest.mark.asyncio
    async def test_rsvp_twice(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        await service.add_rsvp(event.id, bob)
        with pytest.raises(EventMembershipError):
            await service.add_rsvp(event.id, bob)

    @pytest.mark.asyncio
    async def test_owner_rsvp(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        with pytest.raises(EventMembershipError) as exc_info:
            await service.add_rsvp(event.id, ann)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_remove_rsvp(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        await service.add_rsvp(event.id, bob)

        event = await service.remove_rsvp(event.id, bob)

        assert event.rsvps == []
        assert container.notifier.sent[-1].verb == Verb.REMOVE_RSVP

    @pytest.mark.asyncio
    async def test_rsvp_by_link(self, service, container):
        """The link in an invitation RSVPs and verifies the guest's email."""
        ann, _, _ = await make_people(container)
        guest = await container.user_repository.commit(new_user("guest@x.com", registered=False))
        event = await plan(service, ann, guest)
        user_id, b64ts, signature = link_parts(container.mail.rsvp_link(event, guest))

        user = await service.rsvp_by_link(
            RsvpLinkRequest(user_id=user_id, timestamp=b64ts, signature=signature, event_id=event.id)
        )

        assert user.verified
        event = await service.get_event(event.id, ann)
        assert event.has_rsvp(guest.key)

    @pytest.mark.asyncio
    async def test_rsvp_link_for_non_guest(self, service, container):
        ann, bob, cy = await make_people(container)
        event = await plan(service, ann, bob)
        user_id, b64ts, signature = link_parts(container.mail.rsvp_link(event, cy))

        with pytest.raises(NotInvitedError) as exc_info:
            await service.rsvp_by_link(
                RsvpLinkRequest(user_id=user_id, timestamp=b64ts, signature=signature, event_id=event.id)
            )
        assert exc_info.value.status_code == 401


class TestInviteLinks:
    @pytest.mark.asyncio
    async def test_join_by_link(self, service, container):
        ann, bob, cy = await make_people(container)
        event = await plan(service, ann, bob)
        _, b64ts, signature = link_parts(await service.get_invite_link(event.id, ann))

        event = await service.join_by_link(
            event.id, cy, InviteLinkRequest(timestamp=b64ts, signature=signature)
        )

        assert event.has_user(cy.key)
        assert event.has_rsvp(cy.key)

    @pytest.mark.asyncio
    async def test_rolled_link_stops_working(self, service, container):
        ann, bob, cy = await make_people(container)
        event = await plan(service, ann, bob)
        _, b64ts, signature = link_parts(await service.get_invite_link(event.id, ann))

        new_link = await service.roll_invite_link(event.id, ann)

        assert new_link.startswith("https://app.test/invite/")
        with pytest.raises(InvalidSignatureError):
            await service.join_by_link(event.id, cy, InviteLinkRequest(timestamp=b64ts, signature=signature))

    @pytest.mark.asyncio
    async def test_guests_cannot_see_invite_link(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        with pytest.raises(EventAccessDeniedError):
            await service.get_invite_link(event.id, bob)

    @pytest.mark.asyncio
    async def test_only_owner_rolls_link(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob, hosts=[UserInput(id=bob.id)])
        token = event.token

        with pytest.raises(EventAccessDeniedError):
            await service.roll_invite_link(event.id, bob)

        event = await service.get_event(event.id, ann)
        assert event.token == token


class TestMessages:
    @pytest.mark.asyncio
    async def test_message_marks_author_only(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)

        await service.add_message(event.id, bob, "on my way")

        event = await service.get_event(event.id, ann)
        assert not is_read(event, ann.key)
        assert is_read(event, bob.key)
        assert [m.body for m in await service.get_messages(event.id, ann)] == ["on my way"]

    @pytest.mark.asyncio
    async def test_outsider_cannot_post(self, service, container):
        ann, bob, cy = await make_people(container)
        event = await plan(service, ann, bob)
        with pytest.raises(EventAccessDeniedError):
            await service.add_message(event.id, cy, "hi")

    @pytest.mark.asyncio
    async def test_mark_read(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        await service.add_message(event.id, ann, "hello")

        event = await service.mark_read(event.id, bob)

        assert is_read(event, bob.key)
        messages = await service.get_messages(event.id, bob)
        assert all(is_read(m, bob.key) for m in messages)

    @pytest.mark.asyncio
    async def test_view(self, service, container):
        ann, bob, _ = await make_people(container)
        event = await plan(service, ann, bob)
        await service.add_rsvp(event.id, bob)
        event = await service.get_event(event.id, ann)

        view = await service.event_view(event)

        assert view.owner.full_name == "Ann Lee"
        assert [u.full_name for u in view.rsvps] == ["Bob Ray"]
        assert view.address == "1 Infinite Loop"
