"""
Outbound email transport.

SmtpMailer sends through any SMTP relay with aiosmtplib. Without SMTP
settings, LoggingMailer logs each message and keeps it in ``outbox``.
"""

import logging
from email.message import EmailMessage as MIMEMessage
from email.utils import formataddr

import aiosmtplib

from .interfaces import IMailer
from .models import EmailMessage
from .exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

ICS_FILENAME = "event.ics"


def to_mime(message: EmailMessage) -> MIMEMessage:
    mime = MIMEMessage()
    mime["From"] = formataddr((message.from_name, message.from_email))
    mime["To"] = formataddr((message.to_name, message.to_email))
    mime["Subject"] = message.subject
    if message.reply_to:
        mime["Reply-To"] = message.reply_to
    mime.set_content(message.text)
    mime.add_alternative(message.html, subtype="html")
    if message.ics:
        mime.add_attachment(
            message.ics.encode("utf-8"),
            maintype="text",
            subtype="calendar",
            filename=ICS_FILENAME,
        )
    return mime


class SmtpMailer(IMailer):
    """Mailer that relays through an SMTP server."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
    ):
        self._host = host
        self._port = port
        self._username = username or None
        self._password = password or None
        # Port 465 is implicit TLS; anything else upgrades with STARTTLS.
        self._use_tls = use_tls and port == 465
        self._start_tls = use_tls and port != 465

    async def send(self, message: EmailMessage) -> None:
        try:
            await aiosmtplib.send(
                to_mime(message),
                hostname=self._host,
                port=self._port,
                username=self._username,
                password=self._password,
                use_tls=self._use_tls,
                start_tls=self._start_tls,
            )
        except aiosmtplib.SMTPException as e:
            raise MailDeliveryError(message.to_email, str(e))
        logger.info("Email sent to %s: %s", message.to_email, message.subject)


class LoggingMailer(IMailer):
    """Mailer for local development and tests."""

    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        logger.info("mail.send(from=%r, to=%r, subject=%r)", message.from_email, message.to_email, message.subject)
        self.outbox.append(message)


def build_mailer(host: str, port: int, username: str, password: str, use_tls: bool) -> IMailer:
    if not host:
        logger.warning("SMTP not configured, using logging mailer")
        return LoggingMailer()
    return SmtpMailer(host, port, username, password, use_tls)
