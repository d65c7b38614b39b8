from fastapi import Depends, Request
from fastapi_users import BaseUserManager
from typing import Optional
import logging

from settings.config import settings
from settings.db import get_user_db
from auth.models import User
from categories.category_repo import CategoryRepo
from users.user_repo import SurrealUserDatabase

logger = logging.getLogger(__name__)


class UserManager(BaseUserManager[User, str]):
    reset_password_token_secret = settings.ENV_RESET_PASSWORD_TOKEN_SECRET
    verification_token_secret = settings.ENV_VERIFICATION_TOKEN_SECRET

    def parse_id(self, value) -> str:
        return str(value)

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info(f"User {user.email} has registered.")
        if settings.SEED_DEFAULT_CATEGORIES:
            await CategoryRepo(self.user_db.db).seed_defaults(user.id)


async def get_user_manager(user_db: SurrealUserDatabase = Depends(get_user_db)) -> UserManager:
    yield UserManager(user_db)
