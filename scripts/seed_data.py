import asyncio
import logging
import sys

from fastapi_users.password import PasswordHelper
from surrealdb import AsyncSurreal

from budgets.budget_model import CategoryBudget
from budgets.budget_repo import BudgetRepo
from budgets.budget_service import BudgetService
from categories.category_repo import CategoryRepo
from expenses.expense_model import PaymentMode
from expenses.expense_repo import ExpenseRepo
from income.income_model import IncomeSource
from income.income_repo import IncomeRepo
from settings.db import close_db, get_db
from settings.logging_config import configure_logging
from stats.windows import current_period
from users.user_repo import SurrealUserDatabase

logger = logging.getLogger(__name__)

TEST_EMAIL = "test@example.com"
TEST_PASSWORD = "password123"

# (title, amount, category name, payment mode, notes)
SAMPLE_EXPENSES = (
	("Lunch at Restaurant", 25.50, "Food", PaymentMode.CREDIT_CARD, "Delicious meal"),
	("Uber Ride", 15.00, "Travel", PaymentMode.UPI, "Airport ride"),
	("Monthly Rent", 1200.00, "Rent", PaymentMode.NET_BANKING, "Monthly rent"),
)

CATEGORY_LIMITS = (("Food", 500.00), ("Travel", 300.00), ("Rent", 1200.00))


async def seed(db: AsyncSurreal, email: str = TEST_EMAIL, password: str = TEST_PASSWORD) -> bool:
	"""Create a demo user with categories, expenses, income and this month's budget.

	Returns False without touching anything when the user already exists.
	"""
	users = SurrealUserDatabase(db, "users")
	if await users.get_by_email(email) is not None:
		logger.info("Test user %s already exists, skipping seed data", email)
		return False

	user = await users.create({
		"email": email,
		"hashed_password": PasswordHelper().hash(password),
		"name": "Test User",
		"is_verified": True,
	})
	logger.info("Test user created: %s", user.email)

	category_repo = CategoryRepo(db)
	categories = {row["name"]: row for row in await category_repo.seed_defaults(user.id)}

	expenses = ExpenseRepo(db)
	for title, amount, category, mode, notes in SAMPLE_EXPENSES:
		await expenses.create(user.id, {
			"title": title,
			"amount": amount,
			"category": categories[category]["id"],
			"payment_mode": mode,
			"notes": notes,
		})
	logger.info("Created %d sample expenses", len(SAMPLE_EXPENSES))

	await IncomeRepo(db).create(user.id, {
		"title": "Monthly Salary",
		"amount": 5000.00,
		"source": IncomeSource.SALARY,
		"notes": "Monthly salary",
	})

	year, month = current_period()
	service = BudgetService(BudgetRepo(db), expenses, category_repo)
	await service.upsert_budget(
		user.id,
		year,
		month,
		3000.00,
		[CategoryBudget(category=categories[name]["id"], limit=limit) for name, limit in CATEGORY_LIMITS],
	)
	logger.info("Budget created for %04d-%02d", year, month)
	return True


async def main() -> int:
	configure_logging()
	db = await get_db()
	try:
		created = await seed(db)
	finally:
		await close_db()
	if created:
		print("Seed data created successfully")
		print(f"Email: {TEST_EMAIL}")
		print(f"Password: {TEST_PASSWORD}")
	else:
		print("Test user already exists. Skipping seed data creation.")
	return 0


if __name__ == "__main__":
	sys.exit(asyncio.run(main()))
