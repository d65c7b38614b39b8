import os
import sys

# Provide required auth secrets for tests if not already set
os.environ.setdefault("ENV_SECRET", "test-secret")
os.environ.setdefault("ENV_RESET_PASSWORD_TOKEN_SECRET", "test-reset-secret")
os.environ.setdefault("ENV_VERIFICATION_TOKEN_SECRET", "test-verify-secret")

# Ensure project root is on sys.path so `settings`, `budgets`, ... resolve
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


# --- Test utilities: Fake in-memory SurrealDB ---
import copy
import re
import uuid
from collections import defaultdict

import pytest
import pytest_asyncio


UNIQUE_INDEXES = {
    "users": ("email",),
    "category": ("user", "name_key"),
    "budget": ("user", "year", "month"),
}

TOKEN = re.compile(r"string::lowercase\(\w+\)|\(|\)|\$\w+|>=|<=|!=|=|>|<|\w+")

SELECT = re.compile(
    r"^SELECT (?P<proj>.+?) FROM (?P<table>\w+)"
    r"(?: WHERE (?P<where>.+?))?"
    r"(?: ORDER BY (?P<order>\w+) (?P<dir>ASC|DESC))?"
    r"(?: LIMIT (?P<limit>\$?\w+))?"
    r"(?: START (?P<start>\$?\w+))?"
    r"(?P<group> GROUP ALL)?$",
    re.S,
)


def _split_thing(thing):
    table = getattr(thing, "table_name", None)
    key = getattr(thing, "id", None)
    if table is None:
        table, key = str(thing).split(":", 1)
    return table, str(key)


def _bound(token, vars):
    return int(vars[token[1:]]) if token.startswith("$") else int(token)


class _Where:
    """Recursive-descent evaluator for the WHERE clauses the repositories emit."""

    def __init__(self, text: str, vars: dict):
        self.tokens = TOKEN.findall(text)
        self.pos = 0
        self.vars = vars

    def _peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self):
        tok = self._peek()
        self.pos += 1
        return tok

    def parse(self):
        predicate = self._or()
        assert self._peek() is None, f"unparsed tokens: {self.tokens[self.pos:]}"
        return predicate

    def _or(self):
        left = self._and()
        while self._peek() == "OR":
            self._next()
            right = self._and()
            left = (lambda a, b: lambda rec: a(rec) or b(rec))(left, right)
        return left

    def _and(self):
        left = self._term()
        while self._peek() == "AND":
            self._next()
            right = self._term()
            left = (lambda a, b: lambda rec: a(rec) and b(rec))(left, right)
        return left

    def _term(self):
        if self._peek() == "(":
            self._next()
            inner = self._or()
            assert self._next() == ")"
            return inner
        return self._atom()

    def _atom(self):
        lhs, op, rhs = self._next(), self._next(), self._next()
        value = self.vars[rhs[1:]]
        lowercase = lhs.startswith("string::lowercase(")
        field = lhs[len("string::lowercase("):-1] if lowercase else lhs

        def predicate(rec):
            current = rec.get(field)
            if lowercase:
                current = str(current or "").lower()
            if op == "=":
                return current == value
            if op == "!=":
                return current != value
            if op == "CONTAINS":
                return str(value) in str(current)
            if current is None or value is None:
                return False
            return {">=": current >= value, "<=": current <= value, ">": current > value, "<": current < value}[op]

        return predicate


class FakeAsyncSurreal:
    def __init__(self) -> None:
        self._tables = defaultdict(dict)
        self.queries = []

    def _check_unique(self, table: str, record: dict) -> None:
        fields = UNIQUE_INDEXES.get(table)
        if not fields:
            return
        key = tuple(record.get(f) for f in fields)
        for other in self._tables[table].values():
            if other["id"] != record["id"] and tuple(other.get(f) for f in fields) == key:
                raise RuntimeError(f"Database index `{table}_unique` already contains {key}")

    async def select(self, thing):
        table, key = _split_thing(thing)
        rec = self._tables[table].get(key)
        return copy.deepcopy(rec) if rec is not None else None

    async def create(self, thing, payload: dict):
        if isinstance(thing, str) and ":" not in thing:
            table, key = thing, uuid.uuid4().hex
        else:
            table, key = _split_thing(thing)
            if key in self._tables[table]:
                raise RuntimeError(f"Database record `{table}:{key}` already exists")
        record = {**copy.deepcopy(payload), "id": f"{table}:{key}"}
        self._check_unique(table, record)
        self._tables[table][key] = record
        return copy.deepcopy(record)

    async def merge(self, thing, payload: dict):
        table, key = _split_thing(thing)
        current = self._tables[table].get(key)
        if current is None:
            return None
        updated = {**current, **copy.deepcopy(payload)}
        self._check_unique(table, updated)
        self._tables[table][key] = updated
        return copy.deepcopy(updated)

    async def delete(self, thing):
        table, key = _split_thing(thing)
        self._tables[table].pop(key, None)

    async def query(self, query: str, vars: dict | None = None):
        vars = vars or {}
        sql = " ".join(query.split()).rstrip(";")
        self.queries.append(sql)

        insert = re.match(r"^INSERT IGNORE INTO (\w+) \$(\w+)$", sql)
        if insert:
            table = insert.group(1)
            row = copy.deepcopy(vars[insert.group(2)])
            _, key = _split_thing(row["id"])
            if key not in self._tables[table]:
                record = {**row, "id": f"{table}:{key}"}
                self._check_unique(table, record)
                self._tables[table][key] = record
                return [copy.deepcopy(record)]
            return []

        select = SELECT.match(sql)
        assert select, f"unsupported query: {sql}"
        rows = list(self._tables[select["table"]].values())
        if select["where"]:
            predicate = _Where(select["where"], vars).parse()
            rows = [r for r in rows if predicate(r)]
        if select["order"]:
            field = select["order"]
            present = [r for r in rows if r.get(field) is not None]
            missing = [r for r in rows if r.get(field) is None]
            present.sort(key=lambda r: r[field], reverse=select["dir"] == "DESC")
            rows = present + missing
        if select["start"]:
            rows = rows[_bound(select["start"], vars):]
        if select["limit"]:
            rows = rows[:_bound(select["limit"], vars)]
        if select["proj"].startswith("count()"):
            alias = select["proj"].split(" AS ")[-1] if " AS " in select["proj"] else "count"
            return [{alias: len(rows)}] if rows else []
        return copy.deepcopy(rows)


@pytest.fixture
def fake_db():
    # Provide a fresh fake DB per test function
    return FakeAsyncSurreal()


ALICE = "users:alice"
BOB = "users:bob"


@pytest_asyncio.fixture
async def categories(fake_db):
    """Food and Travel for alice, Food for bob."""
    from categories.category_repo import CategoryRepo

    repo = CategoryRepo(fake_db)
    food = await repo.create(ALICE, {"name": "Food", "color": "#ef4444", "icon": "🍔"})
    travel = await repo.create(ALICE, {"name": "Travel", "color": "#3b82f6", "icon": "✈️"})
    bob_food = await repo.create(BOB, {"name": "Food", "color": "#ef4444", "icon": "🍔"})
    return {"food": food, "travel": travel, "bob_food": bob_food}


@pytest.fixture
def app(fake_db):
    from main import app
    from settings.db import get_db
    from auth.auth import get_current_user

    async def _get_db():
        return fake_db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: ALICE
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)
