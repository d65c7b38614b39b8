from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import Field

from categories.category_model import CategoryRef
from schemas.api import ApiModel, Document


class PaymentMode(str, Enum):
    CASH = "Cash"
    CREDIT_CARD = "Credit Card"
    DEBIT_CARD = "Debit Card"
    UPI = "UPI"
    NET_BANKING = "Net Banking"
    OTHER = "Other"


class Expense(Document):
    title: str
    amount: float
    category: str
    date: datetime
    payment_mode: PaymentMode = PaymentMode.CASH
    notes: str = ""
    receipt: str = ""


class ExpenseOut(Expense):
    # populated when the category still exists, the bare id otherwise
    category: Union[CategoryRef, str]


class ExpenseCreate(ApiModel):
    title: str = Field(min_length=1, max_length=100)
    amount: float = Field(ge=0.01)
    category: str = Field(min_length=1)
    date: Optional[datetime] = None
    payment_mode: PaymentMode = PaymentMode.CASH
    notes: str = Field(default="", max_length=500)
    receipt: str = ""


class ExpenseUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[float] = Field(default=None, ge=0.01)
    category: Optional[str] = Field(default=None, min_length=1)
    date: Optional[datetime] = None
    payment_mode: Optional[PaymentMode] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    receipt: Optional[str] = None


class ExpensePage(ApiModel):
    expenses: List[ExpenseOut]
    total_pages: int
    current_page: int
    total: int


class CategoryTotal(ApiModel):
    category_id: str
    category_name: str
    category_color: str
    total: float
    count: int


class ExpenseSummary(ApiModel):
    total_expenses: float
    expenses_by_category: List[CategoryTotal]
