"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

External collaborators come from the client factories, which fall back to
in-process implementations when their settings are missing. Tests build a
container over a MemoryDatastore and install it with ``set_container``.
"""

from typing import TYPE_CHECKING, AsyncIterator, Optional

from fastapi import Query

from shared.config import Settings, get_settings
from shared.datastore import Datastore, MemoryDatastore, request_scope
from shared.models import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Pagination

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from clients.base import (
        BlobStore,
        LinkPreviewer,
        OAuthClient,
        PlacesClient,
        SearchIndex,
        SignatureStripper,
    )
    from modules.contacts.service import ContactService
    from modules.digest.service import DigestService
    from modules.email_queue.interfaces import IEmailQueue
    from modules.events.interfaces import IEventService
    from modules.events.repository import EventRepository
    from modules.inbound.service import InboundService
    from modules.magic.interfaces import IMagicLinkService
    from modules.mail.interfaces import IMailer
    from modules.mail.service import MailService
    from modules.merge.interfaces import IMergeService
    from modules.messages.repository import MessageRepository
    from modules.messages.service import MessageService
    from modules.notes.repository import NoteRepository
    from modules.notifications.interfaces import INotifier
    from modules.tasks.service import EmailWorker
    from modules.threads.interfaces import IThreadService
    from modules.threads.repository import ThreadRepository
    from modules.users.interfaces import IUserService
    from modules.users.repository import UserRepository


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self, settings: Optional[Settings] = None, datastore: Optional[Datastore] = None) -> None:
        self.settings = settings or get_settings()
        self._datastore = datastore
        self._instances: dict[str, object] = {}

    def _get(self, name: str, factory):
        if name not in self._instances:
            self._instances[name] = factory()
        return self._instances[name]

    # Infrastructure

    @property
    def datastore(self) -> Datastore:
        """Get the entity store."""
        if self._datastore is None:
            if self.settings.datastore_backend == "supabase":
                from shared.database import get_supabase_client
                from shared.supabase_store import SupabaseDatastore
                self._datastore = SupabaseDatastore(get_supabase_client(self.settings))
            else:
                self._datastore = MemoryDatastore()
        return self._datastore

    @property
    def notifier(self) -> "INotifier":
        from modules.notifications.service import build_notifier
        s = self.settings
        return self._get("notifier", lambda: build_notifier(s.stream_api_key, s.stream_api_secret, s.stream_api_url))

    @property
    def queue(self) -> "IEmailQueue":
        from modules.email_queue.service import build_email_queue
        s = self.settings
        return self._get("queue", lambda: build_email_queue(s.task_queue_url, s.task_queue_name))

    @property
    def mailer(self) -> "IMailer":
        from modules.mail.client import build_mailer
        s = self.settings
        return self._get(
            "mailer",
            lambda: build_mailer(s.smtp_host, s.smtp_port, s.smtp_username, s.smtp_password, s.smtp_use_tls),
        )

    @property
    def magic(self) -> "IMagicLinkService":
        from modules.magic.service import MagicLinkService
        s = self.settings
        return self._get("magic", lambda: MagicLinkService(s.app_secret, s.app_host))

    @property
    def search_index(self) -> "SearchIndex":
        from clients.factory import get_search_index
        return self._get("search_index", lambda: get_search_index(self.settings))

    @property
    def blobs(self) -> "BlobStore":
        from clients.factory import get_blob_store
        return self._get("blobs", lambda: get_blob_store(self.settings))

    @property
    def previewer(self) -> "LinkPreviewer":
        from clients.factory import get_link_previewer
        return self._get("previewer", lambda: get_link_previewer(self.settings))

    @property
    def places(self) -> "PlacesClient":
        from clients.factory import get_places_client
        return self._get("places", lambda: get_places_client(self.settings))

    @property
    def oauth_client(self) -> "OAuthClient":
        from clients.factory import get_oauth_client
        return self._get("oauth_client", lambda: get_oauth_client(self.settings))

    @property
    def sigstrip(self) -> "SignatureStripper":
        from clients.factory import get_signature_stripper
        return self._get("sigstrip", lambda: get_signature_stripper(self.settings))

    # Repositories

    @property
    def user_repository(self) -> "UserRepository":
        from modules.users.repository import UserRepository
        return self._get(
            "user_repository",
            lambda: UserRepository(self.datastore, self.notifier, self.search_index),
        )

    @property
    def message_repository(self) -> "MessageRepository":
        from modules.messages.repository import MessageRepository
        return self._get("message_repository", lambda: MessageRepository(self.datastore))

    @property
    def thread_repository(self) -> "ThreadRepository":
        from modules.threads.repository import ThreadRepository
        return self._get("thread_repository", lambda: ThreadRepository(self.datastore))

    @property
    def event_repository(self) -> "EventRepository":
        from modules.events.repository import EventRepository
        return self._get("event_repository", lambda: EventRepository(self.datastore))

    @property
    def note_repository(self) -> "NoteRepository":
        from modules.notes.repository import NoteRepository
        return self._get("note_repository", lambda: NoteRepository(self.datastore))

    # Services

    @property
    def mail(self) -> "MailService":
        from modules.mail.service import MailService
        s = self.settings
        return self._get(
            "mail",
            lambda: MailService(
                mailer=self.mailer,
                magic=self.magic,
                from_email=s.mail_from_email,
                from_name=s.mail_from_name,
                support_email=s.support_email,
            ),
        )

    @property
    def merge(self) -> "IMergeService":
        from modules.merge.service import MergeService
        return self._get(
            "merge",
            lambda: MergeService(
                users=self.user_repository,
                messages=self.message_repository,
                threads=self.thread_repository,
                events=self.event_repository,
                notes=self.note_repository,
            ),
        )

    @property
    def users(self) -> "IUserService":
        from modules.users.service import UserService
        return self._get(
            "users",
            lambda: UserService(
                repository=self.user_repository,
                mail=self.mail,
                queue=self.queue,
                magic=self.magic,
                oauth=self.oauth_client,
                blobs=self.blobs,
                merge=self.merge,
            ),
        )

    @property
    def messages(self) -> "MessageService":
        from modules.messages.service import MessageService
        return self._get(
            "messages",
            lambda: MessageService(self.message_repository, self.previewer, self.blobs),
        )

    @property
    def contacts(self) -> "ContactService":
        from modules.contacts.service import ContactService
        return self._get("contacts", lambda: ContactService(self.users, self.datastore))

    @property
    def threads(self) -> "IThreadService":
        from modules.threads.service import ThreadService
        return self._get(
            "threads",
            lambda: ThreadService(
                repository=self.thread_repository,
                users=self.users,
                messages=self.messages,
                notifier=self.notifier,
                queue=self.queue,
            ),
        )

    @property
    def events(self) -> "IEventService":
        from modules.events.service import EventService
        return self._get(
            "events",
            lambda: EventService(
                repository=self.event_repository,
                users=self.users,
                messages=self.messages,
                mail=self.mail,
                notifier=self.notifier,
                queue=self.queue,
                magic=self.magic,
                places=self.places,
            ),
        )

    @property
    def email_worker(self) -> "EmailWorker":
        from modules.tasks.service import EmailWorker
        s = self.settings
        return self._get(
            "email_worker",
            lambda: EmailWorker(
                users=self.user_repository,
                threads=self.thread_repository,
                events=self.event_repository,
                messages=self.messages,
                mail=self.mail,
                support_email=s.support_email,
                support_password=s.support_password,
            ),
        )

    @property
    def digest(self) -> "DigestService":
        from modules.digest.service import DigestService
        return self._get(
            "digest",
            lambda: DigestService(
                users=self.user_repository,
                threads=self.thread_repository,
                events=self.event_repository,
                messages=self.messages,
                mail=self.mail,
            ),
        )

    @property
    def inbound(self) -> "InboundService":
        from modules.inbound.service import InboundService
        return self._get(
            "inbound",
            lambda: InboundService(
                threads=self.threads,
                users=self.users,
                mail=self.mail,
                sigstrip=self.sigstrip,
                worker=self.email_worker,
            ),
        )

    def override(self, name: str, instance: object) -> None:
        """Use ``instance`` for the named service, e.g. a fake client in tests."""
        self._instances[name] = instance

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._instances = {}


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer) -> None:
    """Install a prepared container (used by tests)."""
    global _container
    _container = container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


async def request_transactions() -> AsyncIterator[None]:
    """Roll back any transaction a request leaves pending."""
    async with request_scope():
        yield


def get_user_service() -> "IUserService":
    """FastAPI dependency for user service."""
    return get_container().users


def get_contact_service() -> "ContactService":
    """FastAPI dependency for contact service."""
    return get_container().contacts


def get_thread_service() -> "IThreadService":
    """FastAPI dependency for thread service."""
    return get_container().threads


def get_event_service() -> "IEventService":
    """FastAPI dependency for event service."""
    return get_container().events


def get_email_worker() -> "EmailWorker":
    """FastAPI dependency for the email job worker."""
    return get_container().email_worker


def get_digest_service() -> "DigestService":
    """FastAPI dependency for digest service."""
    return get_container().digest


def get_inbound_service() -> "InboundService":
    """FastAPI dependency for inbound mail service."""
    return get_container().inbound


def get_pagination(
    page: int = Query(default=0, ge=0),
    size: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> Pagination:
    """FastAPI dependency for ``?page=&size=`` list parameters."""
    return Pagination(page=page, size=size)
