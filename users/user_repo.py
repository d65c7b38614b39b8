from typing import Optional, Union, Any, Dict, List
import logging

from fastapi import HTTPException
from fastapi_users.db import BaseUserDatabase
from surrealdb import AsyncSurreal
from auth.models import Role, User
from settings.db import fetch_rows, normalize_record, now_iso, thing


logger = logging.getLogger(__name__)

class SurrealUserDatabase(BaseUserDatabase[User, str]):
    def __init__(self, db: AsyncSurreal, collection: str = "users") -> None:
        self.db = db
        self.collection = collection

    async def get(self, id: Union[str, int]) -> Optional[User]:
        try:
            record = await self.db.select(thing(self.collection, id))
        except Exception as exc:
            logger.exception("Error querying user by id '%s': %s", id, exc)
            raise HTTPException(status_code=500, detail="Error querying user by id")
        if record:
            return User(**self._normalize_record(record))
        return None

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            rows = await fetch_rows(self.db, f"SELECT * FROM {self.collection} WHERE email = $email LIMIT 1;", {"email": email})
        except Exception as exc:
            logger.exception("Error querying user by email from collection '%s': %s", self.collection, exc)
            raise HTTPException(status_code=500, detail="Error querying user by email")
        if rows:
            return User(**self._normalize_record(rows[0]))
        return None

    async def create(self, create_dict: dict) -> User:
        now = now_iso()
        # Ensure required flags and timestamps exist on create
        payload = {
            **create_dict,
            "name": create_dict.get("name", ""),
            "role": create_dict.get("role", Role.USER.value),
            "avatar": create_dict.get("avatar", ""),
            "is_active": create_dict.get("is_active", True),
            "is_superuser": create_dict.get("is_superuser", False),
            "is_verified": create_dict.get("is_verified", False),
            "created_at": create_dict.get("created_at", now),
            "updated_at": create_dict.get("updated_at", now),
        }
        record = await self.db.create(self.collection, payload)
        if isinstance(record, list):
            record = record[0]
        return User(**self._normalize_record(record))

    async def update(self, user: User, update_dict: dict) -> User:
        payload = {
            **update_dict,
            "updated_at": now_iso(),
        }
        record = await self.db.merge(thing(self.collection, user.id), payload)
        return User(**self._normalize_record(record))

    async def delete(self, user: User) -> None:
        await self.db.delete(thing(self.collection, user.id))

    async def list_all(self) -> List[User]:
        rows = await fetch_rows(self.db, f"SELECT * FROM {self.collection} ORDER BY created_at DESC;")
        return [User(**row) for row in rows]

    def _normalize_record(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return normalize_record(record)
