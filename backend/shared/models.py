"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class ApiModel(BaseModel):
    """
    Base for request and response bodies.

    Python attributes are snake_case; the JSON surface is camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Pagination(BaseModel):
    """
    Page selection for list endpoints.

    A negative size means "no limit"; in that case ``page`` is used as a
    plain offset.
    """

    page: int = Field(default=0, ge=0)
    size: int = 0

    @property
    def limit(self) -> int:
        return self.size or DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        if self.limit < 0:
            return self.page
        return self.page * self.limit


class MessageResponse(BaseModel):
    """Plain ``{"message": ...}`` acknowledgement."""

    message: str


class UserInput(ApiModel):
    """Reference to a user by external id or by email address."""

    id: Optional[str] = None
    email: Optional[str] = None
