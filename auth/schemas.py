from __future__ import annotations

from typing import Optional

from fastapi_users import schemas
from pydantic import Field

from auth.models import Role


class UserRead(schemas.BaseUser[str]):
    name: str = ""
    role: Role = Role.USER
    avatar: str = ""


class UserCreate(schemas.BaseUserCreate):
    name: str = Field(min_length=1, max_length=50)


class UserUpdate(schemas.BaseUserUpdate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    avatar: Optional[str] = None
