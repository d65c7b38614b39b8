from __future__ import annotations

from typing import Any, Dict, Optional
import logging

from surrealdb import AsyncSurreal

from settings.db import fetch_rows, normalize_record, now_iso, record_key, thing

logger = logging.getLogger(__name__)


def budget_key(user_id: str, year: int, month: int) -> str:
    """Record key for the single budget a user may have in a given month."""
    return f"{record_key(user_id, 'users')}_{year:04d}_{month:02d}"


class BudgetRepo:
    table = "budget"

    def __init__(self, db: AsyncSurreal):
        self.db = db

    async def get(self, user_id: str, year: int, month: int) -> Optional[dict]:
        record = await self.db.select(thing(self.table, budget_key(user_id, year, month)))
        return normalize_record(record)

    async def ensure(self, user_id: str, year: int, month: int) -> dict:
        """Fetch the month's budget, inserting a zeroed one if there is none yet.

        INSERT IGNORE leaves an existing record untouched and returns no rows,
        so two requests racing on the first read of a month both end up with
        the same document and only the winner logs the creation.
        """
        existing = await self.get(user_id, year, month)
        if existing is not None:
            return existing
        now = now_iso()
        row = {
            "id": thing(self.table, budget_key(user_id, year, month)),
            "user": user_id,
            "year": year,
            "month": month,
            "monthly_budget": 0,
            "category_budgets": [],
            "created_at": now,
            "updated_at": now,
        }
        inserted = await fetch_rows(self.db, "INSERT IGNORE INTO budget $row;", {"row": row})
        if inserted:
            logger.info("Created empty budget for %s %04d-%02d", user_id, year, month)
        else:
            logger.debug("Budget for %s %04d-%02d was created by a concurrent request", user_id, year, month)
        return await self.get(user_id, year, month)

    async def patch(self, user_id: str, year: int, month: int, patch: Dict[str, Any]) -> dict:
        payload = {**patch, "updated_at": now_iso()}
        record = await self.db.merge(thing(self.table, budget_key(user_id, year, month)), payload)
        return normalize_record(record)
