"""
Event service.

Events have an owner, optional hosts and up to 300 guests. The owner and
every host are guests themselves. Invitations go out through the email
queue; guests without an account RSVP through a signed link in their
invitation, and anyone holding the event's invite link can join it.
"""

import html
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from shared.datastore import Datastore, after_commit, transactional
from shared.exceptions import ConvoError
from shared.keys import Key, unique_keys
from shared.log import alarm
from shared.models import Pagination, UserInput
from shared.reads import clear_reads, is_read, mark_read, readers
from shared.validation import is_email, normalize_email
from clients.base import PlacesClient
from modules.email_queue.interfaces import IEmailQueue
from modules.email_queue.models import EmailAction, EmailPayload, EmailType
from modules.magic.interfaces import IMagicLinkService
from modules.magic.service import format_bool
from modules.mail.exceptions import MailDeliveryError
from modules.mail.service import MailService
from modules.messages.exceptions import MessageNotFoundError
from modules.messages.models import Message, MessageView
from modules.messages.service import MessageService
from modules.notifications.interfaces import INotifier
from modules.notifications.models import Notification, Target, Verb, filter_key
from modules.users.interfaces import IUserService
from modules.users.models import User, UserPartial

from .ics import build_ics
from .interfaces import IEventService
from .models import (
    MAX_EVENT_USERS,
    CreateEventRequest,
    Event,
    EventView,
    InviteLinkRequest,
    RsvpLinkRequest,
    UpdateEventRequest,
)
from .repository import EventRepository
from .exceptions import (
    EventAccessDeniedError,
    EventMembershipError,
    EventValidationError,
    NotInvitedError,
    PastEventError,
    UnverifiedOwnerError,
)

logger = logging.getLogger(__name__)

# Clock skew allowed between the client and us when scheduling.
SCHEDULE_GRACE = timedelta(minutes=1)


def check_schedule(timestamp: datetime) -> None:
    if timestamp < datetime.now(timezone.utc) - SCHEDULE_GRACE:
        raise EventValidationError("time", "Your event must be in the future")


def pick_users(users: list[User], inputs: list[UserInput]) -> list[User]:
    """The users among ``users`` that ``inputs`` name by id or email."""
    ids = {item.id for item in inputs if item.id}
    emails = {normalize_email(item.email) for item in inputs if item.email and not item.id}
    return [
        user for user in users
        if user.id in ids or user.email in emails or any(user.has_email(e) for e in emails)
    ]


def rsvp_salt(event: Event) -> str:
    """Salt of RSVP links; it changes when the token rolls or the event starts."""
    return event.token + format_bool(not event.is_in_future())


def add_guest(event: Event, user: User) -> None:
    """
    Raises:
        EventMembershipError: If already a guest or the event is full
    """
    if event.owner_is(user.key) or event.has_user(user.key):
        raise EventMembershipError(event.id, "This user is already invited to this event")
    if len(event.users) >= MAX_EVENT_USERS:
        raise EventMembershipError(event.id, "This event has the maximum number of guests")
    event.users.append(user.key)


def remove_guest(event: Event, user: User) -> None:
    if not event.has_user(user.key):
        raise EventMembershipError(event.id, "This user is not invited to this event")
    if event.owner_is(user.key):
        raise EventMembershipError(event.id, "You cannot remove yourself from your own event")
    event.users.remove(user.key)
    if user.key in event.hosts:
        event.hosts.remove(user.key)


def add_rsvp(event: Event, user: User) -> None:
    """RSVP ``user``. Every guest sees the event as unread again."""
    if not event.has_user(user.key):
        raise NotInvitedError(event.id, user.id)
    if event.owner_is(user.key) or event.has_rsvp(user.key):
        raise EventMembershipError(event.id, "You have already RSVP'd")
    event.rsvps.append(user.key)
    clear_reads(event)


def remove_rsvp(event: Event, user: User) -> None:
    if not event.has_user(user.key):
        raise EventAccessDeniedError(event.id, user.id)
    if event.owner_is(user.key):
        raise EventMembershipError(event.id, "You cannot remove yourself from your own event")
    if user.key in event.rsvps:
        event.rsvps.remove(user.key)


class EventService(IEventService):
    """Event guests, RSVPs, invite links, messages and read markers."""

    def __init__(
        self,
        repository: EventRepository,
        users: IUserService,
        messages: MessageService,
        mail: MailService,
        notifier: INotifier,
        queue: IEmailQueue,
        magic: IMagicLinkService,
        places: PlacesClient,
    ):
        self._repo = repository
        self._users = users
        self._messages = messages
        self._mail = mail
        self._notifier = notifier
        self._queue = queue
        self._magic = magic
        self._places = places

    @property
    def datastore(self) -> Datastore:
        return self._repo.datastore

    # Side effects

    async def _notify(self, event: Event, actor: User, verb: Verb, recipients: list[Key]) -> None:
        if not recipients:
            return
        notification = Notification(
            user_keys=recipients,
            actor=actor.full_name,
            verb=verb,
            target=Target.EVENT,
            target_id=event.id,
            target_name=event.name,
        )

        async def put() -> None:
            try:
                await self._notifier.put(notification)
            except ConvoError as e:
                alarm(e.with_op(f"EventService.notify({event.id}, {verb.value})"))

        await after_commit(put)

    async def _enqueue_invites(self, event: Event, updated: bool = False) -> None:
        action = EmailAction.SEND_UPDATED_INVITES if updated else EmailAction.SEND_INVITES
        payload = EmailPayload(ids=[event.id], type=EmailType.EVENT, action=action)

        async def put() -> None:
            try:
                await self._queue.put_email(payload)
            except ConvoError as e:
                alarm(e.with_op(f"EventService.enqueue_invites({event.id})"))

        await after_commit(put)

    async def _owner(self, event: Event) -> Optional[User]:
        owners = await self._users.get_users([event.owner])
        return owners[0] if owners else None

    # Lookups

    async def _get_for(self, event_id: str, user: User) -> Event:
        event = await self._repo.get(event_id)
        if not (event.owner_is(user.key) or event.has_user(user.key)):
            raise EventAccessDeniedError(event_id, user.id)
        return event

    async def _get_owned(self, event_id: str, user: User) -> Event:
        event = await self._repo.get(event_id)
        if not event.owner_is(user.key):
            raise EventAccessDeniedError(event_id, user.id)
        return event

    async def get_events(self, user: User, pagination: Optional[Pagination] = None) -> list[Event]:
        return await self._repo.get_by_user(user.key, pagination or Pagination())

    async def get_event(self, event_id: str, user: User) -> Event:
        return await self._get_for(event_id, user)

    # Events

    @transactional
    async def create_event(self, owner: User, request: CreateEventRequest) -> Event:
        if not owner.is_registered:
            raise UnverifiedOwnerError(owner.id)
        check_schedule(request.timestamp)
        if len(request.users) > MAX_EVENT_USERS:
            raise EventMembershipError("", "Events have a maximum of 300 members")

        place = await self._places.resolve(request.place_id)
        people = await self._users.get_or_create_users(request.users + request.hosts)
        hosts = pick_users(people, request.hosts)

        keys = unique_keys([user.key for user in people] + [owner.key])
        if len(keys) > MAX_EVENT_USERS:
            raise EventMembershipError("", "Events have a maximum of 300 members")

        event = Event(
            owner=owner.key,
            hosts=unique_keys([host.key for host in hosts]),
            users=keys,
            name=html.unescape(request.name),
            description=html.unescape(request.description),
            place_id=place.place_id,
            address=place.address,
            lat=place.lat,
            lng=place.lng,
            timestamp=request.timestamp,
            utc_offset=place.utc_offset if request.utc_offset is None else request.utc_offset,
            guests_can_invite=request.guests_can_invite,
        )
        mark_read(event, owner.key)
        await self._repo.commit(event)
        logger.info("User %s created event %s with %d guests", owner.id, event.id, len(event.users))

        await self._notify(event, owner, Verb.NEW_EVENT, filter_key(event.users, owner.key))
        await self._enqueue_invites(event)
        return event

    @transactional
    async def update_event(self, event_id: str, user: User, request: UpdateEventRequest) -> Event:
        event = await self._get_owned(event_id, user)
        if not event.is_in_future():
            raise PastEventError(event.id)

        if request.hosts is not None:
            hosts = await self._users.get_or_create_users(request.hosts)
            host_keys = unique_keys([host.key for host in hosts])
            if set(host_keys) != set(event.hosts):
                added = [key for key in host_keys if not event.has_user(key)]
                if len(event.users) + len(added) > MAX_EVENT_USERS:
                    raise EventMembershipError(event.id, "This event has the maximum number of guests")
                event.hosts = host_keys
                event.users.extend(added)

        if request.name and request.name != event.name:
            event.name = html.unescape(request.name)
        if request.description and request.description != event.description:
            event.description = html.unescape(request.description)
        if request.guests_can_invite is not None:
            event.guests_can_invite = request.guests_can_invite
        if request.timestamp is not None and request.timestamp != event.timestamp:
            check_schedule(request.timestamp)
            event.timestamp = request.timestamp
        if request.place_id and request.place_id != event.place_id:
            place = await self._places.resolve(request.place_id)
            event.place_id = place.place_id
            event.address = place.address
            event.lat = place.lat
            event.lng = place.lng
            event.utc_offset = place.utc_offset if request.utc_offset is None else request.utc_offset

        await self._repo.commit(event)

        if request.resend:
            await self._enqueue_invites(event, updated=True)
        await self._notify(event, user, Verb.UPDATE_EVENT, filter_key(event.users, user.key))
        return event

    @transactional
    async def delete_event(self, event_id: str, user: User, message: str = "") -> Event:
        event = await self._get_owned(event_id, user)

        await self._messages.delete_messages(event.key)
        await self._repo.delete(event)
        logger.info("User %s deleted event %s", user.id, event.id)

        if event.is_in_future():
            guests = await self._users.get_users(filter_key(event.users, user.key))
            recipients = [guest for guest in guests if guest.send_events]
            await after_commit(
                lambda: self._mail.send_cancellation(event, user, recipients, html.unescape(message))
            )
            await self._notify(event, user, Verb.DELETE_EVENT, filter_key(event.users, user.key))
        return event

    # Guests

    @transactional
    async def add_user(self, event_id: str, actor: User, user_ref: str) -> Event:
        event = await self._repo.get(event_id)
        allowed = (
            event.owner_is(actor.key)
            or event.host_is(actor.key)
            or (event.guests_can_invite and event.has_user(actor.key))
        )
        if not allowed:
            raise EventAccessDeniedError(event_id, actor.id)

        if is_email(user_ref):
            added = await self._users.get_or_create_by_email(user_ref)
        else:
            added = await self._users.get_user(user_ref)

        add_guest(event, added)
        await self._repo.commit(event)

        if added.send_events:
            owner = await self._owner(event) or actor

            async def send() -> None:
                try:
                    await self._mail.send_event_invitation(event, owner, added, build_ics(event, owner.full_name))
                except MailDeliveryError as e:
                    alarm(e.with_op(f"EventService.add_user({event.id}, {added.id})"))

            await after_commit(send)
        return event

    @transactional
    async def remove_user(self, event_id: str, actor: User, user_id: str) -> Event:
        event = await self._repo.get(event_id)
        removed = await self._users.get_user(user_id)

        if not (event.owner_is(actor.key) or removed.has_key(actor.key)):
            raise EventAccessDeniedError(event_id, actor.id)

        remove_rsvp(event, removed)
        remove_guest(event, removed)
        return await self._repo.commit(event)

    # RSVPs

    @transactional
    async def add_rsvp(self, event_id: str, user: User) -> Event:
        event = await self._get_for(event_id, user)
        add_rsvp(event, user)
        await self._repo.commit(event)
        await self._notify(event, user, Verb.ADD_RSVP, [event.owner])
        return event

    @transactional
    async def remove_rsvp(self, event_id: str, user: User) -> Event:
        event = await self._get_for(event_id, user)
        remove_rsvp(event, user)
        await self._repo.commit(event)
        await self._notify(event, user, Verb.REMOVE_RSVP, [event.owner])
        return event

    # Magic links

    async def get_invite_link(self, event_id: str, user: User) -> str:
        event = await self._repo.get(event_id)
        if not (event.owner_is(user.key) or event.host_is(user.key)):
            raise EventAccessDeniedError(event_id, user.id)
        return self._mail.invite_link(event)

    @transactional
    async def roll_invite_link(self, event_id: str, user: User) -> str:
        event = await self._get_owned(event_id, user)
        event.roll_token()
        await self._repo.commit(event)
        logger.info("User %s rolled the invite link of event %s", user.id, event.id)
        return self._mail.invite_link(event)

    @transactional
    async def join_by_link(self, event_id: str, user: User, request: InviteLinkRequest) -> Event:
        event = await self._repo.get(event_id)
        self._magic.verify(event.id, request.timestamp, event.token, request.signature)

        add_guest(event, user)
        add_rsvp(event, user)
        await self._repo.commit(event)
        await self._notify(event, user, Verb.ADD_RSVP, [event.owner])
        return event

    @transactional
    async def rsvp_by_link(self, request: RsvpLinkRequest) -> User:
        user = await self._users.get_user(request.user_id)
        event = await self._repo.get(request.event_id)
        self._magic.verify(request.user_id, request.timestamp, rsvp_salt(event), request.signature)

        if event.has_rsvp(user.key):
            # Following the link twice is harmless.
            logger.info("User %s already RSVP'd to event %s", user.id, event.id)
            return user

        add_rsvp(event, user)
        user.add_email(user.email)
        await self._repo.commit(event)
        await self._users.commit(user)
        logger.info("User %s RSVP'd to event %s by link", user.id, event.id)
        await self._notify(event, user, Verb.ADD_RSVP, [event.owner])
        return user

    # Messages

    async def get_messages(self, event_id: str, user: User) -> list[Message]:
        event = await self._get_for(event_id, user)
        return await self._messages.get_messages(event.key)

    @transactional
    async def add_message(self, event_id: str, author: User, body: str, blob: str = "") -> Message:
        event = await self._get_for(event_id, author)
        message = await self._messages.new_message(author, event.key, body, blob)

        clear_reads(event)
        mark_read(event, author.key)
        await self._repo.commit(event)

        await self._notify(event, author, Verb.NEW_MESSAGE, filter_key(event.users, author.key))
        return message

    @transactional
    async def delete_message(self, event_id: str, user: User, message_id: str) -> Message:
        event = await self._get_for(event_id, user)
        message = await self._messages.get_message(message_id)

        if message.parent != event.key:
            raise MessageNotFoundError(message_id)
        if not message.owner_is(user.key):
            raise EventAccessDeniedError(event_id, user.id)

        await self._messages.delete_message(message, user)
        return message

    # Reads

    @transactional
    async def mark_read(self, event_id: str, user: User) -> Event:
        event = await self._get_for(event_id, user)
        if is_read(event, user.key):
            return event

        await self._messages.mark_messages_as_read(user.key, event.key)
        mark_read(event, user.key)
        return await self._repo.commit(event)

    # Views

    async def _partials(self, keys: list[Key]) -> dict[Key, UserPartial]:
        return await self._users.get_partials(unique_keys(keys))

    @staticmethod
    def _view(event: Event, partials: dict[Key, UserPartial]) -> EventView:
        def pick(keys: list[Key]) -> list[UserPartial]:
            return [partials[k] for k in keys if k in partials]

        return EventView(
            id=event.id,
            owner=partials.get(event.owner),
            hosts=pick(event.hosts),
            users=pick(event.users),
            rsvps=pick(event.rsvps),
            place_id=event.place_id,
            address=event.address,
            lat=event.lat,
            lng=event.lng,
            name=event.name,
            description=event.description,
            timestamp=event.timestamp,
            reads=pick(readers(event)),
            created_at=event.created_at,
            guests_can_invite=event.guests_can_invite,
        )

    @staticmethod
    def _referenced(event: Event) -> list[Key]:
        return [event.owner, *event.hosts, *event.users]

    async def event_view(self, event: Event) -> EventView:
        return self._view(event, await self._partials(self._referenced(event)))

    async def event_views(self, events: list[Event]) -> list[EventView]:
        keys: list[Key] = []
        for event in events:
            keys.extend(self._referenced(event))
        partials = await self._partials(keys)
        return [self._view(event, partials) for event in events]

    async def message_views(self, messages: list[Message]) -> list[MessageView]:
        partials = await self._partials([m.user for m in messages])
        return [MessageView.from_message(m, partials.get(m.user)) for m in messages]
