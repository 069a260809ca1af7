"""
Pydantic schema definitions for API payloads.

Schemas use snake_case attribute names in Python and camelCase on the
wire (``fullName``, ``startTime``, ``numOfEvents``); both spellings are
accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    success: bool = True
    message: str
