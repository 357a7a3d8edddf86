"""
Inbound email ingest.

The mail provider posts every email sent to a reply address. The thread
is found from the numeric id at the end of the address's local part, the
sender from the envelope, and the reply text is cleaned of quoted history
and signatures before it is posted as a message.

Ingest is not deduplicated: the same email posted twice becomes two
messages.
"""

import html
import json
import logging
from email.utils import parseaddr

from bs4 import BeautifulSoup

from clients.base import SignatureStripper
from shared.exceptions import ExternalServiceError
from shared.log import alarm
from shared.validation import is_email
from modules.mail.exceptions import MailDeliveryError
from modules.mail.service import MailService
from modules.messages.models import Message
from modules.tasks.service import EmailWorker
from modules.threads.interfaces import IThreadService
from modules.users.interfaces import IUserService

from .exceptions import InboundRejectedError

logger = logging.getLogger(__name__)

TRAILING_DASHES = "-–—−"


def addresses_from_envelope(envelope: str) -> tuple[str, str]:
    """
    Read the recipient and sender addresses from the SMTP envelope.

    Raises:
        InboundRejectedError: If the envelope is malformed or has more
            than one recipient
    """
    try:
        data = json.loads(envelope)
    except ValueError:
        raise InboundRejectedError("envelope is not JSON")
    if not isinstance(data, dict):
        raise InboundRejectedError("envelope is not an object")

    recipients = data.get("to")
    if not isinstance(recipients, list) or not recipients:
        raise InboundRejectedError("invalid 'to' address type")
    if len(recipients) > 1:
        raise InboundRejectedError("multiple recipients are not supported")

    sender = data.get("from")
    if not isinstance(recipients[0], str) or not isinstance(sender, str):
        raise InboundRejectedError("invalid address type")

    to_address = parseaddr(recipients[0])[1]
    from_address = parseaddr(sender)[1]
    if not is_email(to_address):
        raise InboundRejectedError("invalid 'to' address")
    if not is_email(from_address):
        raise InboundRejectedError("invalid 'from' address")
    return to_address.lower(), from_address.lower()


def thread_id_from_address(address: str) -> int:
    """
    ``hi-there-42@mail.convo.events`` -> 42.

    Raises:
        InboundRejectedError: If the local part does not end in a number
    """
    local = address.split("@", 1)[0]
    try:
        return int(local.rsplit("-", 1)[-1])
    except ValueError:
        raise InboundRejectedError(f"no thread id in {address}")


def html_to_text(body: str) -> str:
    return BeautifulSoup(body, "html.parser").get_text("\n").strip()


class InboundService:
    """Posts inbound replies to their threads."""

    def __init__(
        self,
        threads: IThreadService,
        users: IUserService,
        mail: MailService,
        sigstrip: SignatureStripper,
        worker: EmailWorker,
    ):
        self._threads = threads
        self._users = users
        self._mail = mail
        self._sigstrip = sigstrip
        self._worker = worker

    async def _explain(self, send, sender: str) -> None:
        try:
            await send(sender)
        except MailDeliveryError as e:
            alarm(e.with_op("InboundService.explain"))

    async def _message_text(self, text: str, html_body: str, sender: str) -> str:
        body = text if text else html_to_text(html.unescape(html_body))
        try:
            body = await self._sigstrip.strip(body, sender)
        except ExternalServiceError as e:
            raise InboundRejectedError(f"could not strip signature: {e.message}", sender)
        return body.strip().rstrip(TRAILING_DASHES).strip()

    async def ingest(self, envelope: str, text: str = "", html_body: str = "") -> Message:
        """
        Post an inbound email as a thread message.

        Senders whose reply cannot be delivered get an explanation by email.

        Raises:
            InboundRejectedError: If the email cannot be ingested
        """
        to_address, sender = addresses_from_envelope(envelope)

        thread = await self._threads.get_thread_by_numeric_id(thread_id_from_address(to_address))
        if thread is None:
            await self._explain(self._mail.send_inbound_try_again, sender)
            raise InboundRejectedError(f"no thread for {to_address}", sender)

        user = await self._users.get_user_by_email(sender)
        if user is None or not (thread.owner_is(user.key) or thread.has_user(user.key)):
            await self._explain(self._mail.send_inbound_error, sender)
            raise InboundRejectedError("sender is not a member of the thread", sender)

        body = await self._message_text(text, html_body, sender)
        if not body:
            raise InboundRejectedError("empty message", sender)

        message = await self._threads.post_message(thread, user, html.unescape(body))
        await self._worker.send_thread(thread)
        logger.info("Ingested inbound message %s on thread %s", message.id, thread.id)
        return message
