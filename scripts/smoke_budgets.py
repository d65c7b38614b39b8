import os
import sys
import json
import uuid
from datetime import date
from typing import Tuple

import requests


API_BASE = os.environ.get("API_BASE", "http://localhost:8000")


def print_step(name: str, ok: bool, detail: str = "") -> None:
    status = "OK" if ok else "FAIL"
    line = f"[ {status} ] {name}"
    if detail:
        line += f" -> {detail}"
    print(line)


def ensure_json(resp: requests.Response) -> dict:
    try:
        return resp.json()
    except ValueError:
        return {"raw": resp.text}


def check_health() -> Tuple[bool, dict]:
    r = requests.get(f"{API_BASE}/health", timeout=10)
    return r.status_code == 200, ensure_json(r)


def register_user(email: str, password: str) -> Tuple[bool, dict]:
    payload = {"email": email, "password": password, "name": "Smoke Test"}
    r = requests.post(f"{API_BASE}/auth/register", json=payload, timeout=15)
    return r.status_code in (200, 201), ensure_json(r)


def login_user(email: str, password: str) -> Tuple[bool, dict]:
    data = {"username": email, "password": password}
    headers = {"Content-Type": "application/x-www-form-urlencoded"}
    r = requests.post(f"{API_BASE}/auth/jwt/login", data=data, headers=headers, timeout=15)
    return r.status_code == 200, ensure_json(r)


def first_category(headers: dict) -> Tuple[bool, dict]:
    r = requests.get(f"{API_BASE}/categories/", headers=headers, timeout=15)
    rows = ensure_json(r)
    ok = r.status_code == 200 and isinstance(rows, list) and len(rows) > 0
    return ok, rows[0] if ok else rows


def add_expense(headers: dict, category_id: str, amount: float) -> Tuple[bool, dict]:
    payload = {"title": "Smoke expense", "amount": amount, "category": category_id}
    r = requests.post(f"{API_BASE}/expenses/", json=payload, headers=headers, timeout=15)
    return r.status_code == 201, ensure_json(r)


def set_budget(headers: dict, category_id: str) -> Tuple[bool, dict]:
    payload = {"monthlyBudget": 1000, "categoryBudgets": [{"category": category_id, "limit": 100}]}
    r = requests.post(f"{API_BASE}/budgets/", json=payload, headers=headers, timeout=15)
    return r.status_code == 200, ensure_json(r)


def get_snapshot(headers: dict) -> Tuple[bool, dict]:
    today = date.today()
    params = {"year": today.year, "month": today.month}
    r = requests.get(f"{API_BASE}/budgets/", params=params, headers=headers, timeout=15)
    return r.status_code == 200, ensure_json(r)


def main() -> int:
    email = os.environ.get("SMOKE_EMAIL", f"smoke_{uuid.uuid4().hex[:8]}@example.com")
    password = os.environ.get("SMOKE_PASSWORD", "Secret123!@#")

    ok, data = check_health()
    print_step("GET /health", ok, json.dumps(data))
    if not ok:
        return 1

    ok, data = register_user(email, password)
    print_step("POST /auth/register", ok, json.dumps(data))
    # If already exists, proceed to login anyway

    ok, data = login_user(email, password)
    print_step("POST /auth/jwt/login", ok, json.dumps(data))
    if not ok:
        return 2

    token = data.get("access_token")
    if not token:
        print_step("extract token", False, json.dumps(data))
        return 3
    headers = {"Authorization": f"Bearer {token}"}

    ok, category = first_category(headers)
    print_step("GET /categories/", ok, json.dumps(category))
    if not ok:
        return 4

    ok, data = add_expense(headers, category["_id"], 150)
    print_step("POST /expenses/", ok, json.dumps(data))
    if not ok:
        return 5

    ok, data = set_budget(headers, category["_id"])
    print_step("POST /budgets/", ok, json.dumps(data))
    if not ok:
        return 6

    ok, data = get_snapshot(headers)
    print_step("GET /budgets/", ok, json.dumps(data))
    if ok:
        entry = data["categoryBudgets"][0]
        ok = entry["spent"] >= 150 and entry["isExceeded"] is True
        print_step("category over limit", ok, json.dumps(entry))
    return 0 if ok else 7


if __name__ == "__main__":
    sys.exit(main())
