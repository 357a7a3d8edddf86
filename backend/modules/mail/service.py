"""
Mail service.

Builds and sends every email the backend produces. Administrative mail
(verification, password reset, account merge, inbound explainers, digest)
comes from the robots address; thread and event mail comes from the
aggregate's reply address so answers can be ingested.

Sending to a list of recipients never stops at the first failure: each
failure is reported through the alarm log and the rest are still sent.
"""

import logging
from typing import Optional

from shared.keys import Key
from shared.log import alarm
from modules.magic.interfaces import IMagicLinkService
from modules.magic.service import format_bool
from modules.users.models import User
from modules.messages.models import Message
from modules.threads.models import Thread
from modules.events.models import Event

from .interfaces import IMailer
from .models import DigestItem, EmailMessage, EventItem, MessageItem, ThreadItem
from .render import (
    render_admin,
    render_cancellation,
    render_digest,
    render_event,
    render_thread,
)
from .exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

PASSWORD_RESET_TEXT = "Please click the link below to set your password."
VERIFY_EMAIL_TEXT = "Please click the link below to verify your email address."
MERGE_ACCOUNTS_TEXT = (
    "Please click the link below to verify your email address. This will merge your "
    "account with {merge} into your account with {primary}. If you did not attempt to add "
    "a new email to your account, it might be a good idea to notify {support}."
)
INBOUND_TRY_AGAIN_TEXT = (
    "We could not find the Convo you replied to. It may have been deleted. "
    "Please open Convo and try again."
)
INBOUND_ERROR_TEXT = (
    "We could not deliver your reply because this email address is not a member of "
    "that Convo. Please reply from the address the invitation was sent to."
)

THREAD_EMAIL_MESSAGES = 5


class MailService:
    """Renders and sends Convo email."""

    def __init__(
        self,
        mailer: IMailer,
        magic: IMagicLinkService,
        from_email: str,
        from_name: str,
        support_email: str,
    ):
        self._mailer = mailer
        self._magic = magic
        self._from_email = from_email
        self._from_name = from_name
        self._support_email = support_email

    # Links

    def unsubscribe_link(self, user: User) -> str:
        return self._magic.new_link(user.key, user.token, "unsubscribe")

    def password_reset_link(self, user: User) -> str:
        return self._magic.new_link(user.key, user.password_digest, "reset")

    def verify_email_link(self, user: User, email: str) -> str:
        email = email.lower()
        return self._magic.new_link(
            user.key,
            email + format_bool(user.has_email(email)),
            f"verify/{email}",
        )

    def magic_login_link(self, user: User) -> str:
        return self._magic.new_link(user.key, user.token, "magic")

    def rsvp_link(self, event: Event, user: User) -> str:
        salt = event.token + format_bool(not event.is_in_future())
        return self._magic.new_link(user.key, salt, f"rsvp/{event.id}")

    def invite_link(self, event: Event) -> str:
        return self._magic.new_link(event.key, event.token, "invite")

    # Administrative mail

    async def _send_admin(
        self,
        to_name: str,
        to_email: str,
        subject: str,
        body: str,
        button_text: str = "",
        link: str = "",
    ) -> None:
        text, html = render_admin(body, button_text, link, title=subject)
        if link:
            text = f"{text}\n\n{link}"
        await self._mailer.send(
            EmailMessage(
                from_name=self._from_name,
                from_email=self._from_email,
                to_name=to_name,
                to_email=to_email,
                subject=subject,
                text=text,
                html=html,
            )
        )

    async def send_password_reset(self, user: User) -> None:
        await self._send_admin(
            user.full_name,
            user.email,
            "[convo] Set Password",
            PASSWORD_RESET_TEXT,
            "Set password",
            self.password_reset_link(user),
        )

    async def send_verify_email(self, user: User, email: str) -> None:
        await self._send_admin(
            user.full_name,
            email,
            "[convo] Verify Email",
            VERIFY_EMAIL_TEXT,
            "Verify",
            self.verify_email_link(user, email),
        )

    async def send_merge_accounts(self, user: User, email_to_merge: str) -> None:
        """Ask ``user`` to confirm taking over another account's email."""
        body = MERGE_ACCOUNTS_TEXT.format(
            merge=email_to_merge,
            primary=user.email,
            support=self._support_email,
        )
        await self._send_admin(
            user.full_name,
            user.email,
            "[convo] Verify Email",
            body,
            "Verify",
            self.verify_email_link(user, email_to_merge),
        )

    async def send_inbound_try_again(self, to_email: str) -> None:
        await self._send_admin("", to_email, "[convo] Your reply was not delivered", INBOUND_TRY_AGAIN_TEXT)

    async def send_inbound_error(self, to_email: str) -> None:
        await self._send_admin("", to_email, "[convo] Your reply was not delivered", INBOUND_ERROR_TEXT)

    # Thread mail

    def _message_item(self, message: Message, users: dict[Key, User]) -> MessageItem:
        author = users.get(message.user)
        return MessageItem(
            name=author.first_name or author.display_name if author else "Someone",
            body=message.body,
            photos=list(message.photos),
            link_url=message.link.url if message.link else "",
            link_title=message.link.title if message.link else "",
        )

    async def send_thread(
        self,
        thread: Thread,
        messages: list[Message],
        users: dict[Key, User],
        recipients: list[User],
    ) -> int:
        """
        Send the latest messages of a thread to each recipient.

        The author of the newest message is the sender and never receives
        the email. Returns the number of emails sent.
        """
        if not messages:
            return 0

        latest = messages[-THREAD_EMAIL_MESSAGES:]
        sender = users.get(latest[-1].user)
        sender_name = sender.full_name if sender else self._from_name
        item = ThreadItem(
            subject=thread.subject,
            messages=[self._message_item(m, users) for m in latest],
        )

        sent = 0
        for recipient in recipients:
            if sender is not None and recipient.has_key(sender.key):
                continue
            text, html = render_thread(item, self.unsubscribe_link(recipient))
            try:
                await self._mailer.send(
                    EmailMessage(
                        from_name=sender_name,
                        from_email=thread.email,
                        to_name=recipient.full_name,
                        to_email=recipient.email,
                        subject=thread.subject,
                        text=text,
                        html=html,
                        reply_to=thread.email,
                    )
                )
                sent += 1
            except MailDeliveryError as e:
                alarm(e.with_op(f"MailService.send_thread({thread.id})"))
        return sent

    # Event mail

    def _event_item(self, event: Event, owner: Optional[User], **extra) -> EventItem:
        return EventItem(
            name=event.name,
            address=event.address,
            time=event.formatted_time(),
            description=event.description,
            from_name=owner.full_name if owner else "",
            **extra,
        )

    async def send_event_invitation(
        self,
        event: Event,
        owner: User,
        recipient: User,
        ics: str,
        updated: bool = False,
    ) -> None:
        item = self._event_item(
            event,
            owner,
            magic_link=self.rsvp_link(event, recipient),
            button_text="RSVP",
        )
        text, html = render_event(item, self.unsubscribe_link(recipient))
        subject = ("Updated invitation to {}" if updated else "Invitation to {}").format(event.name)
        await self._mailer.send(
            EmailMessage(
                from_name=owner.full_name,
                from_email=event.email,
                to_name=recipient.full_name,
                to_email=recipient.email,
                subject=subject,
                text=f"{text}\n{item.magic_link}\n",
                html=html,
                reply_to=event.email,
                ics=ics,
            )
        )

    async def send_event_invites(
        self,
        event: Event,
        owner: User,
        recipients: list[User],
        ics: str,
        updated: bool = False,
    ) -> int:
        """Invite every recipient except the owner. Returns the number sent."""
        sent = 0
        for recipient in recipients:
            if event.owner_is(recipient.key):
                continue
            try:
                await self.send_event_invitation(event, owner, recipient, ics, updated)
                sent += 1
            except MailDeliveryError as e:
                alarm(e.with_op(f"MailService.send_event_invites({event.id})"))
        return sent

    async def send_cancellation(
        self,
        event: Event,
        owner: User,
        recipients: list[User],
        message: str = "",
    ) -> int:
        item = self._event_item(event, owner, message=message)
        sent = 0
        for recipient in recipients:
            if event.owner_is(recipient.key):
                continue
            text, html = render_cancellation(item, self.unsubscribe_link(recipient))
            try:
                await self._mailer.send(
                    EmailMessage(
                        from_name=owner.full_name,
                        from_email=event.email,
                        to_name=recipient.full_name,
                        to_email=recipient.email,
                        subject=f"Cancelled: {event.name}",
                        text=text,
                        html=html,
                    )
                )
                sent += 1
            except MailDeliveryError as e:
                alarm(e.with_op(f"MailService.send_cancellation({event.id})"))
        return sent

    # Digest

    async def send_digest(
        self,
        user: User,
        sections: list[DigestItem],
        upcoming: list[Event],
        users: dict[Key, User],
    ) -> None:
        items = [
            ThreadItem(
                subject=section.name,
                messages=[self._message_item(m, users) for m in section.messages],
            )
            for section in sections
        ]
        events = [
            EventItem(name=e.name, address=e.address, time=e.formatted_time())
            for e in upcoming
        ]
        text, html = render_digest(items, events, self.unsubscribe_link(user))
        await self._mailer.send(
            EmailMessage(
                from_name=self._from_name,
                from_email=self._from_email,
                to_name=user.full_name,
                to_email=user.email,
                subject="[convo] Digest",
                text=text,
                html=html,
            )
        )
