from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from surrealdb import AsyncSurreal

from settings.db import fetch_rows, normalize_record, now_iso, thing, to_iso
from settings.errors import DomainValidationError, NotFoundError


SORTABLE_FIELDS = {
    "date": "date",
    "amount": "amount",
    "title": "title",
    "createdAt": "created_at",
    "created_at": "created_at",
}


def parse_sort(sort: str) -> Tuple[str, str]:
    """`-date` -> ("date", "DESC"); only whitelisted fields reach the query text."""
    direction = "DESC" if sort.startswith("-") else "ASC"
    field = SORTABLE_FIELDS.get(sort.lstrip("-+"))
    if field is None:
        raise DomainValidationError(f"Cannot sort by '{sort}'")
    return field, direction


class LedgerRepo:
    """Shared persistence for dated money records (expenses, income) owned by a user."""

    table = ""
    label = ""

    def __init__(self, db: AsyncSurreal):
        self.db = db

    def _where(
        self,
        user_id: str,
        filters: Optional[Dict[str, Any]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> Tuple[str, Dict[str, Any]]:
        clauses = ["user = $user"]
        vars: Dict[str, Any] = {"user": user_id}
        for field, value in (filters or {}).items():
            if value is None:
                continue
            clauses.append(f"{field} = ${field}")
            vars[field] = value.value if isinstance(value, Enum) else value
        if start is not None:
            clauses.append("date >= $start")
            vars["start"] = to_iso(start)
        if end is not None:
            clauses.append("date <= $end")
            vars["end"] = to_iso(end)
        if search:
            clauses.append("(string::lowercase(title) CONTAINS $search OR string::lowercase(notes) CONTAINS $search)")
            vars["search"] = search.lower()
        return " AND ".join(clauses), vars

    async def list_page(
        self,
        user_id: str,
        filters: Optional[Dict[str, Any]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        search: Optional[str] = None,
        sort: str = "-date",
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[dict], int]:
        field, direction = parse_sort(sort)
        where, vars = self._where(user_id, filters, start, end, search)
        rows = await fetch_rows(
            self.db,
            f"SELECT * FROM {self.table} WHERE {where} ORDER BY {field} {direction} LIMIT $limit START $offset;",
            {**vars, "limit": limit, "offset": (page - 1) * limit},
        )
        counted = await fetch_rows(self.db, f"SELECT count() AS total FROM {self.table} WHERE {where} GROUP ALL;", vars)
        total = int(counted[0].get("total", 0)) if counted else 0
        return rows, total

    async def find_in_window(self, user_id: str, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[dict]:
        where, vars = self._where(user_id, start=start, end=end)
        return await fetch_rows(self.db, f"SELECT * FROM {self.table} WHERE {where} ORDER BY date ASC;", vars)

    async def get(self, user_id: str, record_id: str) -> Optional[dict]:
        record = normalize_record(await self.db.select(thing(self.table, record_id)))
        if record is None or record.get("user") != user_id:
            return None
        return record

    async def require(self, user_id: str, record_id: str) -> dict:
        record = await self.get(user_id, record_id)
        if record is None:
            raise NotFoundError(f"{self.label} not found")
        return record

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}
        if isinstance(payload.get("date"), datetime):
            payload["date"] = to_iso(payload["date"])
        return payload

    async def create(self, user_id: str, data: Dict[str, Any]) -> dict:
        now = now_iso()
        payload = self._prepare(data)
        if payload.get("date") is None:
            payload["date"] = now
        payload = {**payload, "user": user_id, "created_at": now, "updated_at": now}
        record = await self.db.create(self.table, payload)
        if isinstance(record, list):
            record = record[0]
        return normalize_record(record)

    async def update(self, user_id: str, record_id: str, patch: Dict[str, Any]) -> dict:
        await self.require(user_id, record_id)
        payload = {**self._prepare(patch), "updated_at": now_iso()}
        record = await self.db.merge(thing(self.table, record_id), payload)
        return normalize_record(record)

    async def delete(self, user_id: str, record_id: str) -> None:
        await self.require(user_id, record_id)
        await self.db.delete(thing(self.table, record_id))
