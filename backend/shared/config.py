"""
Centralized configuration for the Convo backend.

All settings are loaded from environment variables with sensible defaults.
Settings for external collaborators are namespaced (e.g., SMTP_*, STREAM_*,
SUPABASE_*). Secrets are read once at boot and treated as read-only.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Convo API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000", "https://app.convo.events"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Magic links
    app_secret: str = "development-secret"
    app_host: str = "app.convo.events"
    magic_link_max_age_hours: int = 24

    # Outbound and inbound mail
    mail_domain: str = "mail.convo.events"
    mail_from_email: str = "robots@mail.convo.events"
    mail_from_name: str = "Convo"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True

    # Entity store: "memory" or "supabase"
    datastore_backend: str = "memory"

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_db_url: str = ""
    storage_bucket: str = "convo"

    # Push notifications (Stream)
    stream_api_key: str = ""
    stream_api_secret: str = ""
    stream_app_id: str = ""
    stream_api_url: str = "https://us-east-api.stream-io-api.com/api/v1.0"

    # OAuth providers
    google_oauth_client_id: str = ""
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"
    facebook_graph_url: str = "https://graph.facebook.com"

    # Places
    google_places_api_key: str = ""
    google_places_url: str = "https://maps.googleapis.com/maps/api/place/details/json"

    # Signature stripping microservice
    sigstrip_url: str = ""

    # Task queue
    task_queue_url: str = ""
    task_queue_name: str = "convo-emails"

    # Search index
    search_url: str = ""
    search_index: str = "users"

    # Support account used for welcome threads
    support_email: str = "support@convo.events"
    support_password: str = "change-me"

    # Outbound HTTP
    http_timeout_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
