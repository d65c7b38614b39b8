from __future__ import annotations

import re
from typing import Optional

from pydantic import Field, field_validator

from schemas.api import ApiModel, Document

DEFAULT_COLOR = "#6366f1"
DEFAULT_ICON = "📁"
HEX_COLOR = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")


def _check_color(value: Optional[str]) -> Optional[str]:
    if value is not None and not HEX_COLOR.match(value):
        raise ValueError("Please provide a valid hex color")
    return value


class Category(Document):
    name: str
    color: str = DEFAULT_COLOR
    icon: str = DEFAULT_ICON
    is_default: bool = False


class CategoryRef(ApiModel):
    """The slice of a category embedded in budgets and expenses."""

    id: str = Field(alias="_id")
    name: str
    color: str = DEFAULT_COLOR
    icon: str = DEFAULT_ICON


class CategoryCreate(ApiModel):
    name: str = Field(min_length=1, max_length=30)
    color: str = DEFAULT_COLOR
    icon: str = DEFAULT_ICON

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("color")
    @classmethod
    def check_color(cls, v):
        return _check_color(v)


class CategoryUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=30)
    color: Optional[str] = None
    icon: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("color")
    @classmethod
    def check_color(cls, v):
        return _check_color(v)
