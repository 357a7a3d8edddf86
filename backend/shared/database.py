"""
Supabase client factory.

The entity store and the blob store share one service-role client per
project. Row level security is bypassed; the services enforce access.
"""

from functools import lru_cache

from supabase import create_client, Client

from .config import Settings


@lru_cache(maxsize=4)
def _service_client(url: str, service_role_key: str) -> Client:
    return create_client(url, service_role_key)


def get_supabase_client(settings: Settings) -> Client:
    """
    Get the service-role client for the configured project.

    Raises:
        RuntimeError: If the Supabase URL or service role key is not set
    """
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise RuntimeError(
            "Supabase configuration missing. "
            "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables."
        )
    return _service_client(settings.supabase_url, settings.supabase_service_role_key)


def reset_client_cache() -> None:
    """Forget cached clients, e.g. after the settings changed."""
    _service_client.cache_clear()
