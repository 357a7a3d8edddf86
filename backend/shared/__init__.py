"""
Shared infrastructure for the Convo backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- datastore: Transactional entity store facade and the in-memory backend
- supabase_store: Supabase-backed entity store
- entity / keys: Entity base model and keys
- exceptions: Base exception classes
- log: Logging setup and the alarm channel

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .datastore import (
    Datastore,
    MemoryDatastore,
    Query,
    Transaction,
    TransactionConflictError,
    current_transaction,
    request_scope,
)
from .entity import Entity, EntityDecodeError
from .exceptions import (
    ConvoError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    IntegrityError,
    UnsupportedMediaTypeError,
)
from .keys import Key, InvalidKeyError
from .log import alarm, configure_logging
from .models import ApiModel, MessageResponse, Pagination, UserInput

__all__ = [
    "Settings",
    "get_settings",
    "Datastore",
    "MemoryDatastore",
    "Query",
    "Transaction",
    "TransactionConflictError",
    "current_transaction",
    "request_scope",
    "Entity",
    "EntityDecodeError",
    "ConvoError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "IntegrityError",
    "UnsupportedMediaTypeError",
    "Key",
    "InvalidKeyError",
    "alarm",
    "configure_logging",
    "ApiModel",
    "MessageResponse",
    "Pagination",
    "UserInput",
]
