from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from fastapi import Depends
from surrealdb import AsyncSurreal, RecordID
from settings.config import settings
import pathlib
import logging

logger = logging.getLogger(__name__)

SCHEMA_PATH = pathlib.Path(__file__).resolve().parent / "surreal" / "schema.surql"


db = None
# --- Lifecycle management ---
async def init_db():
    """Initialize SurrealDB connection on app startup."""
    logger.info("Connecting to SurrealDB at %s (ns=%s, db=%s)", settings.SURREALDB_URL, settings.SURREALDB_NS, settings.SURREALDB_DB)
    global db
    db = AsyncSurreal(settings.SURREALDB_URL)
    try:
        await db.signin({
            "username": settings.SURREALDB_USER,
            "password": settings.SURREALDB_PASS
            })
    except Exception as e:
        raise Exception(f"Error initializing app database connection. Check your login credentials: {e}") from e

    try:
        await db.use(settings.SURREALDB_NS, settings.SURREALDB_DB)
    except Exception as e:
        raise Exception(f"Error initializing app database connection. Check your credentials: {e}") from e

    # Idempotent DEFINE statements; unique indexes live here
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema_sql = f.read()
    await db.query(schema_sql)
    logger.info("SurrealDB schema applied from %s", SCHEMA_PATH.name)


async def close_db():
    """Close SurrealDB connection on app shutdown."""
    global db
    if db is None:
        return
    try:
        await db.close()  # type: ignore
    except Exception as e:
        raise Exception("Error closing app database connection") from e
    finally:
        db = None


# --- FastAPI dependencies ---
async def get_db():
    """Return the Surreal client for DI and direct usage in tests."""
    if db is None:
        await init_db()
    return db  # type: ignore


async def get_user_db(db: AsyncSurreal = Depends(get_db)):
    from users.user_repo import SurrealUserDatabase

    yield SurrealUserDatabase(db, "users")  # type: ignore


# --- Record helpers ---
def record_key(raw_id: Any, table: str) -> str:
    """Strip the `table:` prefix (and SurrealQL brackets) from a record id."""
    value = str(raw_id)
    prefix = f"{table}:"
    if value.startswith(prefix):
        value = value[len(prefix):]
    return value.strip("⟨⟩`")


def thing(table: str, raw_id: Any) -> RecordID:
    return RecordID(table, record_key(raw_id, table))


def normalize_record(record: Dict[str, Any] | None) -> Dict[str, Any] | None:
    if not record:
        return None
    if "id" in record:
        record = {**record, "id": str(record["id"])}
    return record


def first_result(res: Any) -> List[Dict[str, Any]]:
    """Rows of the first statement, whichever response shape the client returns."""
    if not res:
        return []
    if isinstance(res, dict):
        return [res]
    head = res[0]
    if isinstance(head, dict) and "result" in head and "status" in head:
        rows = head.get("result") or []
        return rows if isinstance(rows, list) else [rows]
    if isinstance(head, list):
        return head
    return list(res)


async def fetch_rows(db: AsyncSurreal, query: str, vars: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
    res = await db.query(query, vars or {})
    return [normalize_record(row) for row in first_result(res) if row]


def to_iso(value: datetime) -> str:
    """Storage form for instants: naive server-local time, second precision."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(microsecond=0).isoformat()


def now_iso() -> str:
    return to_iso(datetime.now())


def ref_id(table: str, raw_id: Any) -> str:
    """Canonical `table:key` string used for references between documents."""
    return f"{table}:{record_key(raw_id, table)}"
