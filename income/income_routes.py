from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from surrealdb import AsyncSurreal

from auth.auth import get_current_user
from income.income_model import (
    Income,
    IncomeCreate,
    IncomePage,
    IncomeSource,
    IncomeSummary,
    IncomeUpdate,
)
from income.income_repo import IncomeRepo
from schemas.api import Message, page_count
from settings.db import get_db
from stats.stats_model import MonthlyIncome
from stats.stats_service import StatsService, get_stats_service
from stats.windows import request_bounds, trailing_months_window


router = APIRouter(prefix="/income", tags=["income"])


def get_income_repo(db: AsyncSurreal = Depends(get_db)) -> IncomeRepo:
    return IncomeRepo(db)


@router.get("/", response_model=IncomePage)
async def list_income(
    source: Optional[IncomeSource] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None),
    sort: str = Query("-date"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    repo: IncomeRepo = Depends(get_income_repo),
) -> IncomePage:
    start, end = request_bounds(start_date, end_date)
    rows, total = await repo.list_page(user_id, {"source": source}, start, end, search, sort, page, limit)
    return IncomePage(
        incomes=[Income.model_validate(row) for row in rows],
        total_pages=page_count(total, limit),
        current_page=page,
        total=total,
    )


@router.get("/stats/summary", response_model=IncomeSummary)
async def income_summary(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user),
    repo: IncomeRepo = Depends(get_income_repo),
    service: StatsService = Depends(get_stats_service),
) -> IncomeSummary:
    start, end = request_bounds(start_date, end_date)
    rows = await repo.find_in_window(user_id, start, end)
    return await service.income_summary(rows)


@router.get("/stats/monthly", response_model=MonthlyIncome)
async def income_monthly(
    months: int = Query(6, ge=1),
    user_id: str = Depends(get_current_user),
    repo: IncomeRepo = Depends(get_income_repo),
    service: StatsService = Depends(get_stats_service),
) -> MonthlyIncome:
    start, end = trailing_months_window(months)
    rows = await repo.find_in_window(user_id, start, end)
    return MonthlyIncome(monthly_income=await service.monthly_totals(rows))


@router.get("/{income_id}", response_model=Income)
async def get_income(income_id: str, user_id: str = Depends(get_current_user), repo: IncomeRepo = Depends(get_income_repo)) -> dict:
    return await repo.require(user_id, income_id)


@router.post("/", response_model=Income, status_code=status.HTTP_201_CREATED)
async def create_income(body: IncomeCreate, user_id: str = Depends(get_current_user), repo: IncomeRepo = Depends(get_income_repo)) -> dict:
    return await repo.create(user_id, body.model_dump())


@router.put("/{income_id}", response_model=Income)
async def update_income(
    income_id: str,
    body: IncomeUpdate,
    user_id: str = Depends(get_current_user),
    repo: IncomeRepo = Depends(get_income_repo),
) -> dict:
    return await repo.update(user_id, income_id, body.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{income_id}", response_model=Message)
async def delete_income(income_id: str, user_id: str = Depends(get_current_user), repo: IncomeRepo = Depends(get_income_repo)) -> Message:
    await repo.delete(user_id, income_id)
    return Message(message="Income deleted successfully")
