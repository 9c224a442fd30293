"""Common Pydantic schemas used across the API."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema whose JSON keys are camelCase.

    Accepts both ``parent_id`` and ``parentId`` on input and reads ORM
    attributes by field name.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Standard API error response."""

    message: str
    error: Optional[str] = None
    errors: Optional[Dict[str, str]] = None
