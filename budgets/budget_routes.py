from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from surrealdb import AsyncSurreal

from auth.auth import get_current_user
from budgets.budget_model import BudgetIn, BudgetOut, BudgetSnapshot
from budgets.budget_repo import BudgetRepo
from budgets.budget_service import BudgetService
from categories.category_repo import CategoryRepo
from expenses.expense_repo import ExpenseRepo
from settings.db import get_db
from stats.windows import current_period


router = APIRouter(prefix="/budgets", tags=["budgets"])


def get_budget_service(db: AsyncSurreal = Depends(get_db)) -> BudgetService:
    return BudgetService(BudgetRepo(db), ExpenseRepo(db), CategoryRepo(db))


def target_period(
    year: Optional[int] = Query(None, description="Defaults to the current year"),
    month: Optional[int] = Query(None, description="1-12, defaults to the current month"),
) -> tuple[int, int]:
    this_year, this_month = current_period()
    return (year if year is not None else this_year, month if month is not None else this_month)


@router.get("/", response_model=BudgetSnapshot)
async def get_budget(
    period: tuple[int, int] = Depends(target_period),
    user_id: str = Depends(get_current_user),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetSnapshot:
    return await service.get_budget_snapshot(user_id, *period)


@router.post("/", response_model=BudgetOut)
async def upsert_budget(
    body: BudgetIn,
    period: tuple[int, int] = Depends(target_period),
    user_id: str = Depends(get_current_user),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetOut:
    return await service.upsert_budget(user_id, *period, body.monthly_budget, body.category_budgets)


@router.put("/", response_model=BudgetOut)
async def update_budget(
    body: BudgetIn,
    period: tuple[int, int] = Depends(target_period),
    user_id: str = Depends(get_current_user),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetOut:
    return await service.update_budget(user_id, *period, body.monthly_budget, body.category_budgets)
