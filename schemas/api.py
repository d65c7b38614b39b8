from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python and in the store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(ApiModel):
    id: str = Field(alias="_id")
    user: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Message(ApiModel):
    message: str


def page_count(total: int, limit: int) -> int:
    return -(-total // limit) if limit else 0
