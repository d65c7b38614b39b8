from __future__ import annotations

from transactions.ledger_repo import LedgerRepo


class ExpenseRepo(LedgerRepo):
    table = "expense"
    label = "Expense"
