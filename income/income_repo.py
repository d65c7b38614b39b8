from __future__ import annotations

from transactions.ledger_repo import LedgerRepo


class IncomeRepo(LedgerRepo):
    table = "income"
    label = "Income"
