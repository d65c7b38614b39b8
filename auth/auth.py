from __future__ import annotations

from fastapi_users import FastAPIUsers
from fastapi_users.authentication import AuthenticationBackend, BearerTransport, JWTStrategy
from fastapi import Depends, HTTPException, status

from .models import Role, User
from .user_manager import get_user_manager
from settings.config import settings


bearer_transport = BearerTransport(tokenUrl="/auth/jwt/login")


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(secret=settings.ENV_SECRET, lifetime_seconds=settings.JWT_LIFETIME_SECONDS)


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)


fastapi_users = FastAPIUsers[User, str](
    get_user_manager,
    [auth_backend],
)


# Dependency to require an authenticated, active user and return the user's ID
_current_active_user = fastapi_users.current_user(active=True)

async def get_current_user(user: User = Depends(_current_active_user)) -> str:
    return user.id

async def get_current_active_user(user: User = Depends(_current_active_user)) -> User:
    return user

async def require_admin(user: User = Depends(_current_active_user)) -> User:
    if user.role != Role.ADMIN and not user.is_superuser:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized as an admin")
    return user
