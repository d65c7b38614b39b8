from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from categories.category_model import CategoryRef
from schemas.api import ApiModel, Document


class CategoryBudget(ApiModel):
    category: str
    limit: float = Field(ge=0)


class BudgetIn(ApiModel):
    """Body of POST/PUT /budgets; omitted fields keep their stored values."""

    monthly_budget: Optional[float] = Field(default=None, ge=0)
    category_budgets: Optional[List[CategoryBudget]] = None


class BudgetBase(Document):
    year: int
    month: int = Field(ge=1, le=12)
    monthly_budget: float = Field(default=0, ge=0)


class PopulatedCategoryBudget(ApiModel):
    # None when the category was deleted after the budget was saved
    category: Optional[CategoryRef]
    limit: float


class BudgetOut(BudgetBase):
    category_budgets: List[PopulatedCategoryBudget] = []


class CategoryBudgetStatus(PopulatedCategoryBudget):
    spent: float
    remaining: float
    is_exceeded: bool


class BudgetSnapshot(BudgetBase):
    category_budgets: List[CategoryBudgetStatus] = []
    total_spent: float
    remaining_budget: float
    is_exceeded: bool
