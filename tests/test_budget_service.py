import logging
from datetime import datetime

import pytest
import pytest_asyncio

from budgets.budget_model import CategoryBudget
from budgets.budget_repo import BudgetRepo, budget_key
from budgets.budget_service import BudgetService, build_snapshot, spending_by_category
from categories.category_repo import CategoryRepo
from expenses.expense_repo import ExpenseRepo
from settings.db import thing
from settings.errors import DomainValidationError, NotFoundError
from conftest import ALICE, BOB


@pytest.fixture
def service(fake_db):
    return BudgetService(BudgetRepo(fake_db), ExpenseRepo(fake_db), CategoryRepo(fake_db))


async def add_expense(fake_db, user_id, category, amount, when):
    return await ExpenseRepo(fake_db).create(
        user_id,
        {"title": f"spend {amount}", "amount": amount, "category": category["id"], "date": when},
    )


@pytest_asyncio.fixture
async def march_expenses(fake_db, categories):
    food, travel = categories["food"], categories["travel"]
    await add_expense(fake_db, ALICE, food, 120, datetime(2024, 3, 2, 9, 30))
    await add_expense(fake_db, ALICE, food, 30, datetime(2024, 3, 18, 19, 0))
    await add_expense(fake_db, ALICE, travel, 50, datetime(2024, 3, 25, 7, 15))
    return categories


def test_spending_by_category_groups_amounts():
    rows = [
        {"category": "category:a", "amount": 10},
        {"category": "category:b", "amount": 2.5},
        {"category": "category:a", "amount": 5},
    ]
    assert spending_by_category(rows) == {"category:a": 15, "category:b": 2.5}


def test_build_snapshot_omits_unbudgeted_categories():
    budget = {
        "id": "budget:x",
        "user": ALICE,
        "year": 2024,
        "month": 3,
        "monthly_budget": 0,
        "category_budgets": [{"category": "category:a", "limit": 10}],
    }
    categories = {"category:a": {"id": "category:a", "name": "A", "color": "#000000", "icon": "a"}}
    expenses = [{"category": "category:a", "amount": 4}, {"category": "category:b", "amount": 6}]

    snapshot = build_snapshot(budget, expenses, categories)

    assert snapshot.total_spent == 10
    assert [cb.category.id for cb in snapshot.category_budgets] == ["category:a"]
    assert snapshot.category_budgets[0].spent == 4
    assert snapshot.is_exceeded is True


@pytest.mark.asyncio
async def test_snapshot_matches_reference_scenario(service, march_expenses):
    food = march_expenses["food"]
    await service.upsert_budget(ALICE, 2024, 3, 1000, [CategoryBudget(category=food["id"], limit=500)])

    snapshot = await service.get_budget_snapshot(ALICE, 2024, 3)

    assert snapshot.total_spent == 200
    assert snapshot.remaining_budget == 800
    assert snapshot.is_exceeded is False
    assert len(snapshot.category_budgets) == 1
    entry = snapshot.category_budgets[0]
    assert entry.category.name == "Food"
    assert entry.spent == 150
    assert entry.remaining == 350
    assert entry.is_exceeded is False


@pytest.mark.asyncio
async def test_category_over_limit_goes_negative(service, march_expenses):
    food = march_expenses["food"]
    await service.upsert_budget(ALICE, 2024, 3, 1000, [CategoryBudget(category=food["id"], limit=100)])

    entry = (await service.get_budget_snapshot(ALICE, 2024, 3)).category_budgets[0]

    assert entry.remaining == -50
    assert entry.is_exceeded is True


@pytest.mark.asyncio
async def test_budgeted_category_without_spend_reports_zero(service, categories):
    await service.upsert_budget(ALICE, 2024, 4, 300, [CategoryBudget(category=categories["travel"]["id"], limit=80)])

    snapshot = await service.get_budget_snapshot(ALICE, 2024, 4)

    assert snapshot.total_spent == 0
    assert snapshot.is_exceeded is False
    assert snapshot.category_budgets[0].spent == 0
    assert snapshot.category_budgets[0].remaining == 80


@pytest.mark.asyncio
async def test_first_read_creates_zeroed_budget_with_live_spend(service, fake_db, march_expenses):
    snapshot = await service.get_budget_snapshot(ALICE, 2024, 3)

    assert snapshot.monthly_budget == 0
    assert snapshot.category_budgets == []
    assert snapshot.total_spent == 200
    assert snapshot.remaining_budget == -200
    assert snapshot.is_exceeded is True
    assert len(fake_db._tables["budget"]) == 1


@pytest.mark.asyncio
async def test_empty_month_is_never_exceeded(service):
    snapshot = await service.get_budget_snapshot(ALICE, 2023, 11)

    assert snapshot.total_spent == 0
    assert snapshot.remaining_budget == 0
    assert snapshot.is_exceeded is False


@pytest.mark.asyncio
async def test_repeated_reads_are_identical_and_store_one_budget(service, fake_db, march_expenses):
    first = await service.get_budget_snapshot(ALICE, 2024, 3)
    second = await service.get_budget_snapshot(ALICE, 2024, 3)

    assert first.model_dump() == second.model_dump()
    assert list(fake_db._tables["budget"]) == [budget_key(ALICE, 2024, 3)]


@pytest.mark.asyncio
async def test_month_window_is_inclusive_at_end_of_day(service, fake_db, categories):
    food = categories["food"]
    await add_expense(fake_db, ALICE, food, 10, datetime(2024, 2, 29, 23, 59, 59))
    await add_expense(fake_db, ALICE, food, 20, datetime(2024, 3, 1, 0, 0, 0))
    await add_expense(fake_db, ALICE, food, 40, datetime(2024, 2, 1, 0, 0, 0))

    february = await service.get_budget_snapshot(ALICE, 2024, 2)
    march = await service.get_budget_snapshot(ALICE, 2024, 3)

    assert february.total_spent == 50
    assert march.total_spent == 20


@pytest.mark.asyncio
async def test_other_users_expenses_are_ignored(service, fake_db, march_expenses):
    await add_expense(fake_db, BOB, march_expenses["bob_food"], 999, datetime(2024, 3, 10))

    assert (await service.get_budget_snapshot(ALICE, 2024, 3)).total_spent == 200
    assert (await service.get_budget_snapshot(BOB, 2024, 3)).total_spent == 999


@pytest.mark.asyncio
async def test_deleted_category_surfaces_as_null(service, fake_db, march_expenses):
    travel = march_expenses["travel"]
    await service.upsert_budget(ALICE, 2024, 3, 500, [CategoryBudget(category=travel["id"], limit=60)])
    await CategoryRepo(fake_db).delete(ALICE, travel["id"])

    entry = (await service.get_budget_snapshot(ALICE, 2024, 3)).category_budgets[0]

    assert entry.category is None
    assert entry.spent == 50
    assert entry.remaining == 10


@pytest.mark.asyncio
async def test_upsert_patches_only_given_fields(service, categories):
    food = categories["food"]
    await service.upsert_budget(ALICE, 2024, 5, 750, [CategoryBudget(category=food["id"], limit=200)])

    patched = await service.upsert_budget(ALICE, 2024, 5, monthly_budget=900)
    assert patched.monthly_budget == 900
    assert patched.category_budgets[0].category.id == food["id"]
    assert patched.category_budgets[0].limit == 200

    cleared = await service.upsert_budget(ALICE, 2024, 5, category_budgets=[])
    assert cleared.monthly_budget == 900
    assert cleared.category_budgets == []


@pytest.mark.asyncio
async def test_upsert_on_missing_month_defaults_to_zero(service, categories):
    budget = await service.upsert_budget(ALICE, 2024, 6, category_budgets=[CategoryBudget(category=categories["food"]["id"], limit=5)])

    assert budget.monthly_budget == 0
    assert budget.year == 2024
    assert budget.month == 6
    assert budget.category_budgets[0].limit == 5


@pytest.mark.asyncio
async def test_upsert_accepts_bare_category_keys(service, fake_db, categories):
    bare_key = categories["food"]["id"].split(":", 1)[1]
    budget = await service.upsert_budget(ALICE, 2024, 7, 100, [CategoryBudget(category=bare_key, limit=50)])

    assert budget.category_budgets[0].category.id == categories["food"]["id"]
    stored = fake_db._tables["budget"][budget_key(ALICE, 2024, 7)]
    assert stored["category_budgets"] == [{"category": categories["food"]["id"], "limit": 50}]


@pytest.mark.asyncio
async def test_upsert_rejects_foreign_category_without_writing(service, fake_db, categories):
    with pytest.raises(DomainValidationError):
        await service.upsert_budget(ALICE, 2024, 3, 100, [CategoryBudget(category=categories["bob_food"]["id"], limit=10)])

    assert fake_db._tables["budget"] == {}


@pytest.mark.asyncio
async def test_upsert_rejects_repeated_category(service, categories):
    food = categories["food"]["id"]
    with pytest.raises(DomainValidationError):
        await service.upsert_budget(
            ALICE, 2024, 3, 100, [CategoryBudget(category=food, limit=10), CategoryBudget(category=food, limit=20)]
        )


@pytest.mark.asyncio
async def test_update_requires_existing_budget(service):
    with pytest.raises(NotFoundError):
        await service.update_budget(ALICE, 2024, 8, monthly_budget=10)


@pytest.mark.asyncio
async def test_update_patches_existing_budget(service):
    await service.get_budget_snapshot(ALICE, 2024, 8)

    updated = await service.update_budget(ALICE, 2024, 8, monthly_budget=42)

    assert updated.monthly_budget == 42


@pytest.mark.asyncio
@pytest.mark.parametrize("year,month", [(2024, 0), (2024, 13), (99, 5)])
async def test_invalid_period_is_rejected(service, year, month):
    with pytest.raises(DomainValidationError):
        await service.get_budget_snapshot(ALICE, year, month)


@pytest.mark.asyncio
async def test_ensure_keeps_existing_budget_on_racing_insert(fake_db):
    repo = BudgetRepo(fake_db)
    first = await repo.ensure(ALICE, 2024, 9)
    await repo.patch(ALICE, 2024, 9, {"monthly_budget": 300})

    # A second "create if absent" that lost the race must not reset the stored values
    row = {"id": thing("budget", first["id"]), "user": ALICE, "year": 2024, "month": 9, "monthly_budget": 0}
    await fake_db.query("INSERT IGNORE INTO budget $row;", {"row": row})

    again = await repo.ensure(ALICE, 2024, 9)
    assert again["monthly_budget"] == 300
    assert len(fake_db._tables["budget"]) == 1



@pytest.mark.asyncio
async def test_ensure_logs_creation_only_for_the_winning_insert(fake_db, caplog, monkeypatch):
    repo = BudgetRepo(fake_db)
    with caplog.at_level(logging.DEBUG, logger="budgets.budget_repo"):
        await repo.ensure(ALICE, 2024, 10)
    assert "Created empty budget" in caplog.text

    # Simulate a request that saw no budget, then lost the insert to another request
    read = repo.get
    calls = []

    async def miss_first_read(*args):
        calls.append(args)
        return None if len(calls) == 1 else await read(*args)

    monkeypatch.setattr(repo, "get", miss_first_read)
    caplog.clear()
    with caplog.at_level(logging.DEBUG, logger="budgets.budget_repo"):
        budget = await repo.ensure(ALICE, 2024, 10)

    assert budget["id"] == f"budget:{budget_key(ALICE, 2024, 10)}"
    assert "Created empty budget" not in caplog.text
    assert "created by a concurrent request" in caplog.text
