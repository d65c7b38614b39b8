
from __future__ import annotations

from typing import Dict, Any, List, Optional, Tuple

import pandas as pd
from functools import lru_cache

from categories.category_model import DEFAULT_COLOR
from expenses.expense_model import CategoryTotal, ExpenseSummary
from income.income_model import IncomeSummary, SourceTotal
from stats.stats_model import MonthlyTotal
from stats.windows import MONTH_ABBR, month_label

class StatsService():
  """Group-by aggregations over expense and income rows fetched for one user."""

  def __init__(self) -> None:
    pass

  async def records_to_dataframe(self, rows: List[Dict[str, Any]], key: Optional[str] = None) -> pd.DataFrame:
    """
    Convert store rows to a typed frame with `date`, `amount` and an optional grouping column.
    """
    dtypes = {"date": "datetime64[ns]", "amount": "float64"}
    if key:
      dtypes[key] = "string"
    if not rows:
      return pd.DataFrame(columns=list(dtypes)).astype(dtypes)
    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0).astype("float64")
    if key:
      df[key] = (df[key] if key in df.columns else pd.Series([pd.NA] * len(df))).astype("string")
    return df[list(dtypes)]

  async def totals_by(self, df: pd.DataFrame, key: str) -> Tuple[float, pd.DataFrame]:
    """Overall total plus per-key total/count, largest total first."""
    if df.empty:
      return 0.0, pd.DataFrame(columns=[key, "total", "count"]).astype(
        {key: "string", "total": "float64", "count": "int64"}
      )
    grp = df.groupby(key, dropna=False).agg(
      total=("amount", "sum"),
      count=("amount", "size"),
    ).reset_index()
    grp = grp.sort_values(by="total", ascending=False, kind="mergesort").reset_index(drop=True)
    return float(df["amount"].sum()), grp

  async def expense_summary(self, rows: List[Dict[str, Any]], categories: Dict[str, dict]) -> ExpenseSummary:
    df = await self.records_to_dataframe(rows, key="category")
    total, grp = await self.totals_by(df, "category")
    by_category = []
    for _, row in grp.iterrows():
      category = categories.get(str(row["category"])) or {}
      by_category.append(CategoryTotal(
        category_id=str(row["category"]),
        category_name=category.get("name", "Unknown"),
        category_color=category.get("color", DEFAULT_COLOR),
        total=float(row["total"]),
        count=int(row["count"]),
      ))
    return ExpenseSummary(total_expenses=total, expenses_by_category=by_category)

  async def income_summary(self, rows: List[Dict[str, Any]]) -> IncomeSummary:
    df = await self.records_to_dataframe(rows, key="source")
    total, grp = await self.totals_by(df, "source")
    by_source = [
      SourceTotal(source=str(row["source"]), total=float(row["total"]), count=int(row["count"]))
      for _, row in grp.iterrows()
    ]
    return IncomeSummary(total_income=total, income_by_source=by_source)

  async def monthly_totals(self, rows: List[Dict[str, Any]]) -> List[MonthlyTotal]:
    """Sum amounts per calendar month, oldest first; months without records are skipped."""
    df = await self.records_to_dataframe(rows)
    df = df.dropna(subset=["date"])
    if df.empty:
      return []
    agg = df.groupby([df["date"].dt.year.rename("year"), df["date"].dt.month.rename("month")])["amount"].sum()
    agg = agg.reset_index().sort_values(by=["year", "month"], kind="mergesort")
    return [
      MonthlyTotal(
        month=MONTH_ABBR[int(r["month"]) - 1],
        year=int(r["year"]),
        total=float(r["amount"]),
        label=month_label(int(r["year"]), int(r["month"])),
      )
      for _, r in agg.iterrows()
    ]


@lru_cache(maxsize=1)
def get_stats_service() -> "StatsService":
  return StatsService()
