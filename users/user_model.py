from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from schemas.api import ApiModel


class ProfileUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None


class PasswordChange(ApiModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class StatusUpdate(ApiModel):
    is_active: Optional[bool] = None


class UserSummary(ApiModel):
    id: str = Field(alias="_id")
    name: str
    email: EmailStr
    role: str
    avatar: str = ""
    is_active: bool


class UserProfile(UserSummary):
    is_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
