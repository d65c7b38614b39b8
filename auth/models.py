from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, EmailStr


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    id: str
    email: EmailStr
    hashed_password: str
    name: str = ""
    role: Role = Role.USER
    avatar: str = ""
    is_active: bool = True
    is_superuser: bool = False
    is_verified: bool = False
    created_at: str | None = None
    updated_at: str | None = None
