"""
Input normalization shared by request models and services.

Request models use the annotated types so pydantic reports failures per
field; services call the plain functions on values that did not come
through a request body.
"""

import re
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BeforeValidator

from .exceptions import ValidationError

EMAIL_RE = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,14}$")

INVALID_EMAIL = "This is not a valid email"


class InvalidEmailError(ValidationError):
    def __init__(self, email: str, field: str = "email"):
        super().__init__(
            f"Invalid email: {email!r}",
            code="INVALID_EMAIL",
            messages={field: INVALID_EMAIL},
        )


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value.strip().lower()))


def normalize_email(value: str) -> str:
    """
    Lowercase and trim an email address.

    Raises:
        InvalidEmailError: If the result is not an email address
    """
    email = value.strip().lower()
    if not EMAIL_RE.match(email):
        raise InvalidEmailError(value)
    return email


def _check_email(value: str) -> str:
    email = value.strip().lower()
    if not EMAIL_RE.match(email):
        raise ValueError(INVALID_EMAIL)
    return email


def _strip(value):
    return value.strip() if isinstance(value, str) else value


Email = Annotated[str, AfterValidator(_check_email)]
Trimmed = Annotated[str, BeforeValidator(_strip)]


def title_name(name: str) -> str:
    """Uppercase the first letter of every word, leaving the rest alone."""
    return " ".join(word[:1].upper() + word[1:] for word in name.strip().split(" "))


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
