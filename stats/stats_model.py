from __future__ import annotations

from typing import List

from schemas.api import ApiModel


class MonthlyTotal(ApiModel):
    month: str
    year: int
    total: float
    label: str


class MonthlyExpenses(ApiModel):
    monthly_expenses: List[MonthlyTotal]


class MonthlyIncome(ApiModel):
    monthly_income: List[MonthlyTotal]
