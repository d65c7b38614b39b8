from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

from surrealdb import AsyncSurreal

from settings.db import fetch_rows, normalize_record, now_iso, thing
from settings.errors import DomainValidationError, DuplicateError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    {"name": "Food", "color": "#ef4444", "icon": "🍔"},
    {"name": "Travel", "color": "#3b82f6", "icon": "✈️"},
    {"name": "Rent", "color": "#8b5cf6", "icon": "🏠"},
    {"name": "Shopping", "color": "#ec4899", "icon": "🛍️"},
    {"name": "Medical", "color": "#10b981", "icon": "🏥"},
)


def _is_duplicate_index_error(exc: Exception) -> bool:
    return "already contains" in str(exc) or "already exists" in str(exc)


class CategoryRepo:
    table = "category"

    def __init__(self, db: AsyncSurreal):
        self.db = db

    async def list_for_user(self, user_id: str) -> List[dict]:
        return await fetch_rows(
            self.db,
            "SELECT * FROM category WHERE user = $user ORDER BY created_at DESC;",
            {"user": user_id},
        )

    async def by_id(self, user_id: str) -> Dict[str, dict]:
        return {row["id"]: row for row in await self.list_for_user(user_id)}

    async def get(self, user_id: str, category_id: str) -> Optional[dict]:
        record = normalize_record(await self.db.select(thing(self.table, category_id)))
        if record is None or record.get("user") != user_id:
            return None
        return record

    async def require(self, user_id: str, category_id: str) -> dict:
        record = await self.get(user_id, category_id)
        if record is None:
            raise NotFoundError("Category not found")
        return record

    async def find_by_name(self, user_id: str, name: str) -> Optional[dict]:
        rows = await fetch_rows(
            self.db,
            "SELECT * FROM category WHERE user = $user AND name_key = $name_key LIMIT 1;",
            {"user": user_id, "name_key": name.strip().lower()},
        )
        return rows[0] if rows else None

    async def create(self, user_id: str, data: Dict[str, Any], is_default: bool = False) -> dict:
        if await self.find_by_name(user_id, data["name"]):
            raise DuplicateError("Category already exists")
        now = now_iso()
        payload = {
            **data,
            "name_key": data["name"].strip().lower(),
            "user": user_id,
            "is_default": is_default,
            "created_at": now,
            "updated_at": now,
        }
        try:
            record = await self.db.create(self.table, payload)
        except Exception as exc:
            if _is_duplicate_index_error(exc):
                raise DuplicateError("Category already exists") from exc
            raise
        if isinstance(record, list):
            record = record[0]
        return normalize_record(record)

    async def update(self, user_id: str, category_id: str, patch: Dict[str, Any]) -> dict:
        current = await self.require(user_id, category_id)
        payload = {k: v for k, v in patch.items() if v is not None}
        new_name = payload.get("name")
        if new_name and new_name != current["name"]:
            clash = await self.find_by_name(user_id, new_name)
            if clash and clash["id"] != current["id"]:
                raise DuplicateError("Category name already exists")
            payload["name_key"] = new_name.strip().lower()
        payload["updated_at"] = now_iso()
        try:
            record = await self.db.merge(thing(self.table, category_id), payload)
        except Exception as exc:
            if _is_duplicate_index_error(exc):
                raise DuplicateError("Category name already exists") from exc
            raise
        return normalize_record(record)

    async def delete(self, user_id: str, category_id: str) -> None:
        current = await self.require(user_id, category_id)
        if current.get("is_default"):
            raise DomainValidationError("Cannot delete default category")
        await self.db.delete(thing(self.table, category_id))

    async def seed_defaults(self, user_id: str) -> List[dict]:
        """Give a user the starter categories, skipping names they already have."""
        created = []
        for entry in DEFAULT_CATEGORIES:
            if await self.find_by_name(user_id, entry["name"]):
                continue
            created.append(await self.create(user_id, dict(entry), is_default=True))
        logger.info("Seeded %d default categories for %s", len(created), user_id)
        return created
