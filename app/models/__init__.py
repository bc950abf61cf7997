from app.models.enums import ExpenseType
from app.models.expense import Expense
from app.models.user import User

__all__ = ["Expense", "ExpenseType", "User"]
