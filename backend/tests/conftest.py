"""
Shared test fixtures and utilities.

Every test gets a fresh service container over a MemoryDatastore with the
in-process implementations of the outside services (mailer, push, queue,
search, blobs) plus fakes for the ones that would otherwise go to the
network (link previews, OAuth).
"""

import asyncio
import re
from datetime import datetime, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import ServiceContainer, reset_container, set_container
from clients.base import LinkData, LinkPreviewer, OAuthClient, OAuthIdentity
from clients.oauth import OAuthVerificationError
from clients.opengraph import find_first_url
from clients.places import StaticPlacesClient
from clients.search import MemorySearchIndex
from clients.sigstrip import PassthroughSignatureStripper
from clients.storage import MemoryBlobStore
from shared.config import Settings
from shared.datastore import MemoryDatastore
from shared.tokens import random_token
from modules.email_queue.service import LoggingEmailQueue
from modules.magic.service import encode_timestamp
from modules.mail.client import LoggingMailer
from modules.notifications.service import LoggingNotifier
from modules.users.models import User
from modules.users.passwords import hash_password

TEST_SECRET = "test-secret-key-for-testing-only"
TEST_PASSWORD = "correct horse"
TEST_PASSWORD_DIGEST = hash_password(TEST_PASSWORD)


class StaticLinkPreviewer(LinkPreviewer):
    """Previews the first URL without fetching it."""

    async def extract(self, text: str) -> Optional[LinkData]:
        url = find_first_url(text)
        if url is None:
            return None
        return LinkData(url=url, title=f"Title of {url}", original=url)


class StaticOAuthClient(OAuthClient):
    """Accepts tokens registered in ``identities``."""

    def __init__(self) -> None:
        self.identities: dict[str, OAuthIdentity] = {}

    async def verify(self, provider: str, token: str) -> OAuthIdentity:
        identity = self.identities.get(token)
        if identity is None or identity.provider != provider:
            raise OAuthVerificationError(provider, "unknown token")
        return identity


def new_user(
    email: str,
    first_name: str = "",
    last_name: str = "",
    registered: bool = True,
) -> User:
    """An unsaved user. Registered users have a verified email and a password."""
    return User(
        email=email,
        emails=[email] if registered else [],
        first_name=first_name or email.split("@")[0],
        last_name=last_name,
        password_digest=TEST_PASSWORD_DIGEST if registered else "",
        token=random_token(),
    )


def link_timestamp(moment: Optional[datetime] = None) -> str:
    return encode_timestamp(moment or datetime.now(timezone.utc))


def link_parts(link: str) -> tuple[str, str, str]:
    """The subject id, timestamp and signature at the end of a magic link."""
    subject_id, b64ts, signature = link.rsplit("/", 3)[1:]
    return subject_id, b64ts, signature


def mailed_link(mailer: LoggingMailer, to_email: str, action: str) -> str:
    """The newest ``action`` magic link emailed to ``to_email``."""
    for message in reversed(mailer.outbox):
        if message.to_email != to_email:
            continue
        found = re.search(rf"https://\S+?/{action}/\S+", message.text)
        if found:
            return found.group(0)
    raise AssertionError(f"No {action} link was mailed to {to_email}")


def auth(user) -> dict[str, str]:
    """Authorization header for a User or a UserView JSON body."""
    token = user["token"] if isinstance(user, dict) else user.token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        app_secret=TEST_SECRET,
        app_host="app.test",
        mail_domain="mail.host",
        task_queue_name="convo-emails",
        support_email="support@convo.events",
        support_password="support-password",
    )


@pytest.fixture
def container(settings: Settings) -> ServiceContainer:
    container = ServiceContainer(settings=settings, datastore=MemoryDatastore())
    container.override("notifier", LoggingNotifier())
    container.override("queue", LoggingEmailQueue())
    container.override("mailer", LoggingMailer())
    container.override("search_index", MemorySearchIndex())
    container.override("blobs", MemoryBlobStore())
    container.override("previewer", StaticLinkPreviewer())
    container.override("places", StaticPlacesClient())
    container.override("oauth_client", StaticOAuthClient())
    container.override("sigstrip", PassthroughSignatureStripper())
    return container


@pytest.fixture
def client(container: ServiceContainer):
    """API client wired to the test container. 500s come back as responses."""
    set_container(container)
    yield TestClient(create_app(), raise_server_exceptions=False)
    reset_container()


@pytest.fixture
def seed(container: ServiceContainer):
    """Store users from synchronous tests: ``alice = seed("alice@x.com")``."""

    def _seed(email: str, first_name: str = "", last_name: str = "", registered: bool = True) -> User:
        user = new_user(email, first_name, last_name, registered)
        return asyncio.run(container.user_repository.commit(user))

    return _seed
