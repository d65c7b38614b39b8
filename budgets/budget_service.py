"""Budget snapshots: persisted monthly limits joined with live expense totals.

Spend figures are never stored. Every read re-scans the month's expenses and
recomputes them with `build_snapshot`, which is a pure function of the budget
document, the expenses in the window and the user's categories.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional
import logging

from budgets.budget_model import (
    BudgetOut,
    BudgetSnapshot,
    CategoryBudget,
    CategoryBudgetStatus,
    PopulatedCategoryBudget,
)
from budgets.budget_repo import BudgetRepo
from categories.category_model import CategoryRef
from categories.category_repo import CategoryRepo
from expenses.expense_repo import ExpenseRepo
from settings.db import ref_id
from settings.errors import DomainValidationError, NotFoundError
from stats.windows import month_window, validate_period

logger = logging.getLogger(__name__)


def _category_ref(category_id: str, categories: Dict[str, dict]) -> Optional[CategoryRef]:
    row = categories.get(category_id)
    if row is None:
        return None
    return CategoryRef.model_validate(row)


def spending_by_category(expenses: Iterable[dict]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for expense in expenses:
        totals[str(expense["category"])] += expense["amount"]
    return dict(totals)


def populate(budget: dict, categories: Dict[str, dict]) -> BudgetOut:
    entries = [
        PopulatedCategoryBudget(category=_category_ref(str(cb["category"]), categories), limit=cb["limit"])
        for cb in budget.get("category_budgets") or []
    ]
    return BudgetOut.model_validate({**budget, "category_budgets": entries})


def build_snapshot(budget: dict, expenses: List[dict], categories: Dict[str, dict]) -> BudgetSnapshot:
    total_spent = sum(expense["amount"] for expense in expenses)
    spending = spending_by_category(expenses)

    statuses = []
    for cb in budget.get("category_budgets") or []:
        category_id = str(cb["category"])
        limit = cb["limit"]
        spent = spending.get(category_id, 0)
        statuses.append(
            CategoryBudgetStatus(
                category=_category_ref(category_id, categories),
                limit=limit,
                spent=spent,
                remaining=limit - spent,
                is_exceeded=spent > limit,
            )
        )

    monthly_budget = budget.get("monthly_budget", 0)
    return BudgetSnapshot.model_validate(
        {
            **budget,
            "category_budgets": statuses,
            "total_spent": total_spent,
            "remaining_budget": monthly_budget - total_spent,
            "is_exceeded": total_spent > monthly_budget,
        }
    )


class BudgetService:
    def __init__(self, budgets: BudgetRepo, expenses: ExpenseRepo, categories: CategoryRepo):
        self.budgets = budgets
        self.expenses = expenses
        self.categories = categories

    @staticmethod
    def _check_period(year: int, month: int) -> None:
        try:
            validate_period(year, month)
        except ValueError as exc:
            raise DomainValidationError(str(exc)) from exc

    async def get_budget_snapshot(self, user_id: str, year: int, month: int) -> BudgetSnapshot:
        self._check_period(year, month)
        budget = await self.budgets.ensure(user_id, year, month)
        start, end = month_window(year, month)
        expenses = await self.expenses.find_in_window(user_id, start, end)
        categories = await self.categories.by_id(user_id)
        logger.debug("Budget %s: %d expenses in %s..%s", budget["id"], len(expenses), start, end)
        return build_snapshot(budget, expenses, categories)

    async def _owned_category_budgets(self, user_id: str, entries: List[CategoryBudget]) -> List[dict]:
        owned = await self.categories.by_id(user_id)
        seen = set()
        rows = []
        for entry in entries:
            category_id = ref_id("category", entry.category)
            if category_id not in owned:
                raise DomainValidationError(f"Category {entry.category} does not belong to this user")
            if category_id in seen:
                raise DomainValidationError(f"Category {entry.category} is listed more than once")
            seen.add(category_id)
            rows.append({"category": category_id, "limit": entry.limit})
        return rows

    async def _build_patch(
        self,
        user_id: str,
        monthly_budget: Optional[float],
        category_budgets: Optional[List[CategoryBudget]],
    ) -> dict:
        patch: dict = {}
        if monthly_budget is not None:
            patch["monthly_budget"] = monthly_budget
        if category_budgets is not None:
            patch["category_budgets"] = await self._owned_category_budgets(user_id, category_budgets)
        return patch

    async def _apply(self, user_id: str, year: int, month: int, patch: dict) -> BudgetOut:
        budget = await self.budgets.patch(user_id, year, month, patch)
        return populate(budget, await self.categories.by_id(user_id))

    async def upsert_budget(
        self,
        user_id: str,
        year: int,
        month: int,
        monthly_budget: Optional[float] = None,
        category_budgets: Optional[List[CategoryBudget]] = None,
    ) -> BudgetOut:
        self._check_period(year, month)
        patch = await self._build_patch(user_id, monthly_budget, category_budgets)
        await self.budgets.ensure(user_id, year, month)
        return await self._apply(user_id, year, month, patch)

    async def update_budget(
        self,
        user_id: str,
        year: int,
        month: int,
        monthly_budget: Optional[float] = None,
        category_budgets: Optional[List[CategoryBudget]] = None,
    ) -> BudgetOut:
        self._check_period(year, month)
        if await self.budgets.get(user_id, year, month) is None:
            raise NotFoundError("Budget not found")
        patch = await self._build_patch(user_id, monthly_budget, category_budgets)
        return await self._apply(user_id, year, month, patch)
