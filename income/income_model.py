from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from schemas.api import ApiModel, Document


class IncomeSource(str, Enum):
    SALARY = "Salary"
    FREELANCE = "Freelance"
    BUSINESS = "Business"
    INVESTMENT = "Investment"
    OTHER = "Other"


class Income(Document):
    title: str
    amount: float
    source: IncomeSource = IncomeSource.SALARY
    date: datetime
    notes: str = ""


class IncomeCreate(ApiModel):
    title: str = Field(min_length=1, max_length=100)
    amount: float = Field(ge=0.01)
    source: IncomeSource = IncomeSource.SALARY
    date: Optional[datetime] = None
    notes: str = Field(default="", max_length=500)


class IncomeUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[float] = Field(default=None, ge=0.01)
    source: Optional[IncomeSource] = None
    date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class IncomePage(ApiModel):
    incomes: List[Income]
    total_pages: int
    current_page: int
    total: int


class SourceTotal(ApiModel):
    source: str
    total: float
    count: int


class IncomeSummary(ApiModel):
    total_income: float
    income_by_source: List[SourceTotal]
