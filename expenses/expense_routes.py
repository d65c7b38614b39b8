from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from surrealdb import AsyncSurreal

from auth.auth import get_current_user
from categories.category_model import CategoryRef
from categories.category_repo import CategoryRepo
from expenses.expense_model import (
    ExpenseCreate,
    ExpenseOut,
    ExpensePage,
    ExpenseSummary,
    ExpenseUpdate,
    PaymentMode,
)
from expenses.expense_repo import ExpenseRepo
from schemas.api import Message, page_count
from settings.db import get_db, ref_id
from stats.stats_model import MonthlyExpenses
from stats.stats_service import StatsService, get_stats_service
from stats.windows import request_bounds, trailing_months_window


router = APIRouter(prefix="/expenses", tags=["expenses"])


def get_expense_repo(db: AsyncSurreal = Depends(get_db)) -> ExpenseRepo:
    return ExpenseRepo(db)


def get_category_repo(db: AsyncSurreal = Depends(get_db)) -> CategoryRepo:
    return CategoryRepo(db)


def with_category(row: dict, categories: Dict[str, dict]) -> ExpenseOut:
    category = categories.get(row["category"])
    return ExpenseOut.model_validate({**row, "category": CategoryRef.model_validate(category) if category else row["category"]})


@router.get("/", response_model=ExpensePage)
async def list_expenses(
    category: Optional[str] = Query(None),
    payment_mode: Optional[PaymentMode] = Query(None, alias="paymentMode"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None),
    sort: str = Query("-date"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    repo: ExpenseRepo = Depends(get_expense_repo),
    categories: CategoryRepo = Depends(get_category_repo),
) -> ExpensePage:
    start, end = request_bounds(start_date, end_date)
    filters = {
        "category": ref_id("category", category) if category else None,
        "payment_mode": payment_mode,
    }
    rows, total = await repo.list_page(user_id, filters, start, end, search, sort, page, limit)
    owned = await categories.by_id(user_id)
    return ExpensePage(
        expenses=[with_category(row, owned) for row in rows],
        total_pages=page_count(total, limit),
        current_page=page,
        total=total,
    )


@router.get("/stats/summary", response_model=ExpenseSummary)
async def expense_summary(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user),
    repo: ExpenseRepo = Depends(get_expense_repo),
    categories: CategoryRepo = Depends(get_category_repo),
    service: StatsService = Depends(get_stats_service),
) -> ExpenseSummary:
    start, end = request_bounds(start_date, end_date)
    rows = await repo.find_in_window(user_id, start, end)
    return await service.expense_summary(rows, await categories.by_id(user_id))


@router.get("/stats/monthly", response_model=MonthlyExpenses)
async def expense_monthly(
    months: int = Query(6, ge=1),
    user_id: str = Depends(get_current_user),
    repo: ExpenseRepo = Depends(get_expense_repo),
    service: StatsService = Depends(get_stats_service),
) -> MonthlyExpenses:
    start, end = trailing_months_window(months)
    rows = await repo.find_in_window(user_id, start, end)
    return MonthlyExpenses(monthly_expenses=await service.monthly_totals(rows))


@router.get("/{expense_id}", response_model=ExpenseOut)
async def get_expense(
    expense_id: str,
    user_id: str = Depends(get_current_user),
    repo: ExpenseRepo = Depends(get_expense_repo),
    categories: CategoryRepo = Depends(get_category_repo),
) -> ExpenseOut:
    row = await repo.require(user_id, expense_id)
    return with_category(row, await categories.by_id(user_id))


@router.post("/", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate,
    user_id: str = Depends(get_current_user),
    repo: ExpenseRepo = Depends(get_expense_repo),
    categories: CategoryRepo = Depends(get_category_repo),
) -> ExpenseOut:
    category = await categories.require(user_id, body.category)
    data = {**body.model_dump(), "category": category["id"]}
    row = await repo.create(user_id, data)
    return with_category(row, {category["id"]: category})


@router.put("/{expense_id}", response_model=ExpenseOut)
async def update_expense(
    expense_id: str,
    body: ExpenseUpdate,
    user_id: str = Depends(get_current_user),
    repo: ExpenseRepo = Depends(get_expense_repo),
    categories: CategoryRepo = Depends(get_category_repo),
) -> ExpenseOut:
    patch = body.model_dump(exclude_unset=True, exclude_none=True)
    if "category" in patch:
        patch["category"] = (await categories.require(user_id, patch["category"]))["id"]
    row = await repo.update(user_id, expense_id, patch)
    return with_category(row, await categories.by_id(user_id))


@router.delete("/{expense_id}", response_model=Message)
async def delete_expense(expense_id: str, user_id: str = Depends(get_current_user), repo: ExpenseRepo = Depends(get_expense_repo)) -> Message:
    await repo.delete(user_id, expense_id)
    return Message(message="Expense deleted successfully")
